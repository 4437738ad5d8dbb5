"""Sweep coordinator: one pass of scanning and expiring reservations."""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from tappark.distributed_lock import DistributedLock, DistributedLockError
from tappark.observability import LoggingEventSink, SweepEventSink
from tappark.schemas.expiry import ExpiryOutcome, OutcomeStatus, SweepSummary
from tappark.services.eligibility_service import EligibilityScanner
from tappark.services.expiration_service import ExpiryError, ReservationExpirer

logger = logging.getLogger(__name__)


class SweepCoordinator:
    """
    Runs sweeps, at most one at a time.

    Candidates are expired strictly one after another. Two expiries on the
    same section would otherwise race on its reserved_count outside of any
    shared transaction.
    """

    def __init__(
        self,
        scanner: EligibilityScanner,
        expirer: ReservationExpirer,
        grace_period_minutes: int,
        events: SweepEventSink | None = None,
        lock: DistributedLock | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the coordinator.

        Args:
            scanner: Finds eligible reservations
            expirer: Expires one reservation per transaction
            grace_period_minutes: Grace period threshold passed to the scanner
            events: Receiver for sweep events, defaults to logging
            lock: Optional lock shared with other processes
            clock: Source of the current time, defaults to the database clock

        Raises:
            ExpiryError: If the grace period is negative
        """
        if grace_period_minutes < 0:
            raise ExpiryError("Grace period must not be negative")

        self.scanner = scanner
        self.expirer = expirer
        self.grace_period_minutes = grace_period_minutes
        self.events = events or LoggingEventSink()
        self.lock = lock
        self.clock = clock
        self.last_summary: SweepSummary | None = None
        self._running = asyncio.Lock()
        self._stop_requested = False

    @property
    def is_running(self) -> bool:
        """Whether a sweep is in flight."""
        return self._running.locked()

    def resume(self) -> None:
        """Accept sweeps again after request_stop."""
        self._stop_requested = False

    def request_stop(self) -> None:
        """
        Stop after the current candidate.

        The in-flight expiry is allowed to commit or roll back; remaining
        candidates are left for the next process, and later calls to
        run_sweep are skipped until resume is called.
        """
        self._stop_requested = True

    async def run_sweep(self) -> SweepSummary:
        """
        Run one sweep.

        Returns immediately with a skipped summary when another sweep is in
        flight, without touching the store.

        Returns:
            Summary of the sweep
        """
        if self._stop_requested:
            self.events.sweep_skipped("shutting down")
            return SweepSummary(skipped=True)

        if self._running.locked():
            self.events.sweep_skipped("sweep already running")
            return SweepSummary(skipped=True)

        async with self._running:
            if self.lock is not None:
                try:
                    acquired = await self.lock.acquire(blocking=False)
                except DistributedLockError as e:
                    logger.error(f"Sweep lock unavailable: {e}")
                    summary = SweepSummary(error=str(e))
                    self.events.sweep_completed(summary)
                    return summary

                if not acquired:
                    self.events.sweep_skipped("sweep running in another process")
                    return SweepSummary(skipped=True)

            try:
                summary = await self._sweep()
            finally:
                if self.lock is not None:
                    await self.lock.release()

            self.last_summary = summary
            self.events.sweep_completed(summary)
            return summary

    def _now(self) -> datetime | None:
        return self.clock() if self.clock is not None else None

    async def _sweep(self) -> SweepSummary:
        now = self._now()
        summary = SweepSummary(started_at=now or datetime.now())

        try:
            candidates = await self.scanner.find_expired_reservations(
                self.grace_period_minutes, now=now
            )
        except Exception as e:
            logger.error(f"Eligibility scan failed: {e}", exc_info=True)
            summary.error = str(e) or type(e).__name__
            summary.finished_at = self._now() or datetime.now()
            return summary

        if candidates:
            logger.info(f"Found {len(candidates)} expired reservations")

        for candidate in candidates:
            if self._stop_requested:
                logger.info(
                    f"Sweep stopped by shutdown with "
                    f"{len(candidates) - summary.attempted} candidates left"
                )
                break

            try:
                outcome = await self.expirer.expire_one(candidate, now=self._now())
            except Exception as e:
                logger.error(
                    f"Unexpected error expiring reservation #{candidate.reservation_id}: {e}",
                    exc_info=True,
                )
                outcome = ExpiryOutcome(
                    reservation_id=candidate.reservation_id,
                    status=OutcomeStatus.FAILED,
                    reason=str(e) or type(e).__name__,
                )

            summary.record(outcome)
            if outcome.status is OutcomeStatus.SUCCEEDED:
                self.events.candidate_expired(outcome)
            elif outcome.status is OutcomeStatus.FAILED:
                self.events.candidate_failed(outcome)

            await self._extend_lock()

        summary.finished_at = self._now() or datetime.now()
        return summary

    async def _extend_lock(self) -> None:
        if self.lock is None:
            return
        try:
            if not await self.lock.extend():
                logger.warning("Sweep lock expired before the sweep finished")
        except DistributedLockError as e:
            logger.warning(f"Failed to extend sweep lock: {e}")
