"""Tests for the sweep scheduler and task wiring."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from tappark.config import Settings
from tappark.distributed_lock import DistributedLock
from tappark.observability import RecordingEventSink
from tappark.schemas.expiry import SweepSummary
from tappark.services.sweep_service import SweepCoordinator
from tappark.tasks import GracePeriodScheduler, create_sweep_coordinator


@pytest.fixture
def coordinator():
    coordinator = Mock()
    coordinator.grace_period_minutes = 15
    coordinator.run_sweep = AsyncMock(return_value=SweepSummary())
    coordinator.request_stop = Mock()
    return coordinator


class TestGracePeriodScheduler:
    """Tests for GracePeriodScheduler."""

    @pytest.mark.asyncio
    async def test_runs_on_start_and_every_interval(self, coordinator):
        scheduler = GracePeriodScheduler(
            coordinator, interval_seconds=0.01, startup_delay_seconds=0
        )

        scheduler.start()
        await asyncio.sleep(0.08)
        await scheduler.stop()

        assert coordinator.run_sweep.await_count >= 2

    @pytest.mark.asyncio
    async def test_startup_delay(self, coordinator):
        scheduler = GracePeriodScheduler(
            coordinator, interval_seconds=10, startup_delay_seconds=0.05
        )

        scheduler.start()
        await asyncio.sleep(0.01)
        assert coordinator.run_sweep.await_count == 0
        await asyncio.sleep(0.1)
        assert coordinator.run_sweep.await_count == 1
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_no_sweeps_after_stop(self, coordinator):
        scheduler = GracePeriodScheduler(
            coordinator, interval_seconds=0.01, startup_delay_seconds=0
        )

        scheduler.start()
        await asyncio.sleep(0.03)
        await scheduler.stop()
        calls = coordinator.run_sweep.await_count
        await asyncio.sleep(0.05)

        assert coordinator.run_sweep.await_count == calls
        assert not scheduler.is_active
        coordinator.request_stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_sweep_errors_do_not_stop_loop(self, coordinator):
        coordinator.run_sweep.side_effect = RuntimeError("boom")
        scheduler = GracePeriodScheduler(
            coordinator, interval_seconds=0.01, startup_delay_seconds=0
        )

        scheduler.start()
        await asyncio.sleep(0.08)
        assert scheduler.is_active
        await scheduler.stop()

        assert coordinator.run_sweep.await_count >= 2

    @pytest.mark.asyncio
    async def test_stop_waits_for_in_flight_sweep(self, coordinator):
        release = asyncio.Event()
        finished = []

        async def sweep():
            await release.wait()
            finished.append(True)
            return SweepSummary()

        coordinator.run_sweep.side_effect = sweep
        scheduler = GracePeriodScheduler(
            coordinator, interval_seconds=10, startup_delay_seconds=0
        )
        scheduler.start()
        await asyncio.sleep(0.01)

        stopping = asyncio.create_task(scheduler.stop(timeout=5))
        await asyncio.sleep(0.01)
        assert not stopping.done()
        coordinator.request_stop.assert_called_once()

        release.set()
        await stopping

        assert finished == [True]

    @pytest.mark.asyncio
    async def test_stop_timeout_cancels(self, coordinator):
        never = asyncio.Event()

        async def sweep():
            await never.wait()

        coordinator.run_sweep.side_effect = sweep
        scheduler = GracePeriodScheduler(
            coordinator, interval_seconds=10, startup_delay_seconds=0
        )
        scheduler.start()
        await asyncio.sleep(0.01)

        await scheduler.stop(timeout=0.01)

        assert not scheduler.is_active

    @pytest.mark.asyncio
    async def test_restart_after_stop_runs_sweeps(self):
        """A stopped scheduler that is started again keeps expiring reservations."""
        scanner = Mock()
        scanner.find_expired_reservations = AsyncMock(return_value=[])
        coordinator = SweepCoordinator(scanner, Mock(), 15, events=RecordingEventSink())
        scheduler = GracePeriodScheduler(
            coordinator, interval_seconds=0.01, startup_delay_seconds=0
        )

        scheduler.start()
        await asyncio.sleep(0.03)
        await scheduler.stop()
        scans = scanner.find_expired_reservations.await_count

        scheduler.start()
        await asyncio.sleep(0.03)
        await scheduler.stop()

        assert scans >= 1
        assert scanner.find_expired_reservations.await_count > scans

    @pytest.mark.asyncio
    async def test_stop_before_start_is_noop(self, coordinator):
        scheduler = GracePeriodScheduler(coordinator, interval_seconds=1)
        await scheduler.stop()
        coordinator.request_stop.assert_not_called()

    def test_interval_must_be_positive(self, coordinator):
        with pytest.raises(ValueError):
            GracePeriodScheduler(coordinator, interval_seconds=0)


class TestCreateSweepCoordinator:
    """Tests for wiring a coordinator from settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)
        coordinator = create_sweep_coordinator(settings, store=Mock())

        assert coordinator.grace_period_minutes == 15
        assert coordinator.lock is None

    def test_distributed_lock_enabled(self):
        settings = Settings(
            _env_file=None,
            GRACE_PERIOD_MINUTES=5,
            SWEEP_DISTRIBUTED_LOCK=True,
            SWEEP_LOCK_TIMEOUT_SECONDS=60,
        )
        coordinator = create_sweep_coordinator(settings, store=Mock(), redis_client=Mock())

        assert coordinator.grace_period_minutes == 5
        assert isinstance(coordinator.lock, DistributedLock)
        assert coordinator.lock.timeout_seconds == 60

    def test_lock_needs_redis_client(self):
        settings = Settings(_env_file=None, SWEEP_DISTRIBUTED_LOCK=True)
        coordinator = create_sweep_coordinator(settings, store=Mock())
        assert coordinator.lock is None
