"""Background tasks for the expiration engine."""

import asyncio
import logging

import redis.asyncio as redis

from tappark.config import Settings, get_settings
from tappark.database import CapacityStore, get_store
from tappark.distributed_lock import DistributedLock
from tappark.observability import SweepEventSink
from tappark.redis_client import get_redis
from tappark.services.eligibility_service import EligibilityScanner
from tappark.services.expiration_service import ReservationExpirer
from tappark.services.sweep_service import SweepCoordinator

logger = logging.getLogger(__name__)

SWEEP_LOCK_KEY = "sweep:grace-period"


class GracePeriodScheduler:
    """
    Drives the sweep coordinator on a fixed period.

    Runs one sweep shortly after start, then one per interval. The interval
    is measured from the start of the previous sweep.
    """

    def __init__(
        self,
        coordinator: SweepCoordinator,
        interval_seconds: float,
        startup_delay_seconds: float = 2.0,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.coordinator = coordinator
        self.interval_seconds = interval_seconds
        self.startup_delay_seconds = startup_delay_seconds
        self._task: asyncio.Task | None = None
        self._stopped = asyncio.Event()

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.is_active:
            return
        self._stopped.clear()
        self.coordinator.resume()
        self._task = asyncio.create_task(self._run(), name="grace-period-sweeps")
        logger.info(
            f"Grace period checker scheduled every {self.interval_seconds}s "
            f"(grace period {self.coordinator.grace_period_minutes} minutes)"
        )

    async def stop(self, timeout: float | None = 30.0) -> None:
        """
        Stop the loop.

        An in-flight sweep finishes its current candidate first. If that
        takes longer than timeout the task is cancelled, which rolls back the
        open transaction.
        """
        if self._task is None:
            return

        self._stopped.set()
        self.coordinator.request_stop()
        try:
            await asyncio.wait_for(self._task, timeout)
        except asyncio.TimeoutError:
            logger.warning("Sweep did not finish before shutdown timeout, cancelled")
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Grace period checker stopped")

    async def _run(self) -> None:
        if await self._wait_for_stop(self.startup_delay_seconds):
            return

        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            await self._tick()
            remaining = self.interval_seconds - (loop.time() - started)
            if await self._wait_for_stop(max(remaining, 0)):
                return

    async def _tick(self) -> None:
        try:
            await self.coordinator.run_sweep()
        except Exception as e:
            logger.error(f"Error in grace period sweep: {e}", exc_info=True)

    async def _wait_for_stop(self, timeout: float) -> bool:
        """Sleep for timeout seconds; True if stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return False


def create_sweep_coordinator(
    settings: Settings,
    store: CapacityStore,
    redis_client: redis.Redis | None = None,
    events: SweepEventSink | None = None,
) -> SweepCoordinator:
    """Wire a coordinator from settings."""
    lock = None
    if settings.SWEEP_DISTRIBUTED_LOCK and redis_client is not None:
        lock = DistributedLock(
            redis_client,
            SWEEP_LOCK_KEY,
            timeout_seconds=settings.SWEEP_LOCK_TIMEOUT_SECONDS,
        )

    return SweepCoordinator(
        scanner=EligibilityScanner(store),
        expirer=ReservationExpirer(store),
        grace_period_minutes=settings.GRACE_PERIOD_MINUTES,
        events=events,
        lock=lock,
    )


class BackgroundTaskManager:
    """Manager for background tasks."""

    def __init__(self):
        self.coordinator: SweepCoordinator | None = None
        self.scheduler: GracePeriodScheduler | None = None

    async def start(self, settings: Settings | None = None) -> None:
        """Start all background tasks."""
        settings = settings or get_settings()

        redis_client = None
        if settings.SWEEP_DISTRIBUTED_LOCK:
            redis_client = await get_redis()

        self.coordinator = create_sweep_coordinator(
            settings, get_store(), redis_client
        )
        self.scheduler = GracePeriodScheduler(
            self.coordinator,
            interval_seconds=settings.SWEEP_INTERVAL_SECONDS,
            startup_delay_seconds=settings.SWEEP_STARTUP_DELAY_SECONDS,
        )
        self.scheduler.start()
        logger.info("Background tasks started")

    async def stop(self) -> None:
        """Stop all background tasks."""
        if self.scheduler is not None:
            await self.scheduler.stop()
            self.scheduler = None
        logger.info("Background tasks stopped")


# Global instance
background_tasks = BackgroundTaskManager()
