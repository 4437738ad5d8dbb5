"""Domain types passed between the scanner, expirer and sweep coordinator."""

import enum
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class SpotTarget:
    """Reservation holds one numbered parking spot."""

    spot_id: int


@dataclass(frozen=True)
class CapacityOnly:
    """Reservation holds section capacity without a numbered spot."""


CAPACITY_ONLY = CapacityOnly()

ReservationTarget = SpotTarget | CapacityOnly


def target_from_spot_id(spot_id: int | None) -> ReservationTarget:
    """Build a target from a stored spot id, where NULL and 0 mean capacity-only."""
    if not spot_id:
        return CAPACITY_ONLY
    return SpotTarget(spot_id)


@dataclass(frozen=True)
class ExpiryCandidate:
    """A reservation found eligible for expiry by the current sweep."""

    reservation_id: int
    user_id: int
    target: ReservationTarget
    section_id: int | None
    created_at: datetime


class OutcomeStatus(str, enum.Enum):
    """Result of expiring one candidate."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    # Reservation changed state between the scan and the write
    SKIPPED = "skipped"


@dataclass
class ExpiryOutcome:
    """Outcome of one expiry attempt."""

    reservation_id: int
    status: OutcomeStatus
    reason: str | None = None
    anomalies: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED


@dataclass
class SweepSummary:
    """Counts for one sweep pass."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    ignored: int = 0
    skipped: bool = False
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    failed_reservation_ids: list[int] = field(default_factory=list)

    def record(self, outcome: ExpiryOutcome) -> None:
        """Tally one candidate outcome."""
        self.attempted += 1
        if outcome.status is OutcomeStatus.SUCCEEDED:
            self.succeeded += 1
        elif outcome.status is OutcomeStatus.FAILED:
            self.failed += 1
            self.failed_reservation_ids.append(outcome.reservation_id)
        else:
            self.ignored += 1

    @property
    def counts(self) -> tuple[int, int, int]:
        """(attempted, succeeded, failed)."""
        return self.attempted, self.succeeded, self.failed
