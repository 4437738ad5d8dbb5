"""
Structured events emitted by the sweep coordinator.

The hosting process decides where these go. The default sink writes them to
the standard logging module; other sinks (metrics, tracing) only need to
implement SweepEventSink.
"""

import logging
from typing import Protocol, runtime_checkable

from tappark.schemas.expiry import ExpiryOutcome, SweepSummary

logger = logging.getLogger(__name__)


@runtime_checkable
class SweepEventSink(Protocol):
    """Receiver for sweep lifecycle and per-candidate events."""

    def sweep_skipped(self, reason: str) -> None:
        """A sweep was requested while another one was in flight."""
        ...

    def sweep_completed(self, summary: SweepSummary) -> None:
        """A sweep finished, successfully or after a scanner error."""
        ...

    def candidate_expired(self, outcome: ExpiryOutcome) -> None:
        """One reservation was expired and committed."""
        ...

    def candidate_failed(self, outcome: ExpiryOutcome) -> None:
        """One reservation could not be expired; it stays reserved."""
        ...


class LoggingEventSink:
    """Sink that writes sweep events to a logger."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def sweep_skipped(self, reason: str) -> None:
        self.log.debug(f"Sweep skipped: {reason}")

    def sweep_completed(self, summary: SweepSummary) -> None:
        if summary.error:
            self.log.error(f"Sweep aborted: {summary.error}")
            return
        message = (
            f"Sweep completed: attempted={summary.attempted} "
            f"succeeded={summary.succeeded} failed={summary.failed}"
        )
        if summary.ignored:
            message += f" ignored={summary.ignored}"
        if summary.failed:
            self.log.warning(
                f"{message} failed_ids={summary.failed_reservation_ids}"
            )
        elif summary.attempted:
            self.log.info(message)
        else:
            self.log.debug(message)

    def candidate_expired(self, outcome: ExpiryOutcome) -> None:
        self.log.info(f"Expired reservation #{outcome.reservation_id}")
        for anomaly in outcome.anomalies:
            self.log.warning(
                f"Reservation #{outcome.reservation_id} anomaly: {anomaly}"
            )

    def candidate_failed(self, outcome: ExpiryOutcome) -> None:
        self.log.error(
            f"Failed to expire reservation #{outcome.reservation_id}: {outcome.reason}"
        )


class RecordingEventSink:
    """In-memory sink, mostly for tests and diagnostics."""

    def __init__(self):
        self.skipped: list[str] = []
        self.summaries: list[SweepSummary] = []
        self.expired: list[ExpiryOutcome] = []
        self.failed: list[ExpiryOutcome] = []

    def sweep_skipped(self, reason: str) -> None:
        self.skipped.append(reason)

    def sweep_completed(self, summary: SweepSummary) -> None:
        self.summaries.append(summary)

    def candidate_expired(self, outcome: ExpiryOutcome) -> None:
        self.expired.append(outcome)

    def candidate_failed(self, outcome: ExpiryOutcome) -> None:
        self.failed.append(outcome)


class CompositeEventSink:
    """Fan events out to several sinks."""

    def __init__(self, *sinks: SweepEventSink):
        self.sinks = list(sinks)

    def sweep_skipped(self, reason: str) -> None:
        for sink in self.sinks:
            sink.sweep_skipped(reason)

    def sweep_completed(self, summary: SweepSummary) -> None:
        for sink in self.sinks:
            sink.sweep_completed(summary)

    def candidate_expired(self, outcome: ExpiryOutcome) -> None:
        for sink in self.sinks:
            sink.candidate_expired(outcome)

    def candidate_failed(self, outcome: ExpiryOutcome) -> None:
        for sink in self.sinks:
            sink.candidate_failed(outcome)
