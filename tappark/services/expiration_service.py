"""Reservation expiry: one candidate, one transaction."""

import logging
from datetime import datetime

from sqlalchemy import and_, case, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from tappark.database import CapacityStore
from tappark.models.audit import AuditAction, AuditEvent
from tappark.models.parking import ParkingSection, ParkingSpot, SpotStatus
from tappark.models.reservation import Reservation, ReservationStatus
from tappark.schemas.expiry import (
    ExpiryCandidate,
    ExpiryOutcome,
    OutcomeStatus,
    SpotTarget,
)

logger = logging.getLogger(__name__)


class ExpiryError(Exception):
    """Expiry operation error."""

    pass


class _NoLongerEligible(Exception):
    """Raised inside the transaction when the reservation changed since the scan."""

    pass


class ReservationExpirer:
    """
    Moves one reservation to invalid and releases what it was holding.

    The reservation update, spot release, section counter decrement and audit
    row share one transaction: either all of them are committed or none are.
    """

    def __init__(self, store: CapacityStore):
        self.store = store

    async def expire_one(
        self,
        candidate: ExpiryCandidate,
        now: datetime | None = None,
    ) -> ExpiryOutcome:
        """
        Expire a single candidate.

        Args:
            candidate: Reservation found eligible by the scanner
            now: Timestamp to stamp on the rows, defaults to the database clock

        Returns:
            Outcome; failures are reported, never raised
        """
        stamp = now if now is not None else func.now()
        anomalies: list[str] = []

        try:
            async with self.store.transaction() as session:
                await self._invalidate_reservation(session, candidate, stamp)

                if isinstance(candidate.target, SpotTarget):
                    await self._release_spot(
                        session, candidate.target.spot_id, anomalies
                    )

                if candidate.section_id:
                    await self._decrement_section(
                        session, candidate.section_id, anomalies
                    )
                else:
                    anomalies.append("reservation has no section; counter not adjusted")

                await self._record_expiry_event(session, candidate, stamp)
        except _NoLongerEligible:
            logger.info(
                f"Reservation #{candidate.reservation_id} is no longer eligible, skipping"
            )
            return ExpiryOutcome(
                reservation_id=candidate.reservation_id,
                status=OutcomeStatus.SKIPPED,
                reason="reservation changed state since scan",
            )
        except Exception as e:
            logger.warning(
                f"Rolled back expiry of reservation #{candidate.reservation_id}: {e}"
            )
            return ExpiryOutcome(
                reservation_id=candidate.reservation_id,
                status=OutcomeStatus.FAILED,
                reason=str(e) or type(e).__name__,
            )

        for anomaly in anomalies:
            logger.warning(f"Reservation #{candidate.reservation_id}: {anomaly}")

        return ExpiryOutcome(
            reservation_id=candidate.reservation_id,
            status=OutcomeStatus.SUCCEEDED,
            anomalies=anomalies,
        )

    async def _invalidate_reservation(
        self,
        session: AsyncSession,
        candidate: ExpiryCandidate,
        now: datetime | ColumnElement[datetime],
    ) -> None:
        # Re-check the state in the WHERE clause; a session may have started since the scan
        result = await session.execute(
            update(Reservation)
            .where(
                and_(
                    Reservation.reservation_id == candidate.reservation_id,
                    Reservation.booking_status == ReservationStatus.RESERVED,
                    Reservation.start_time.is_(None),
                )
            )
            .values(
                booking_status=ReservationStatus.INVALID,
                waiting_end_time=now,
                updated_at=now,
            )
        )
        if result.rowcount == 0:
            raise _NoLongerEligible()

    async def _release_spot(
        self,
        session: AsyncSession,
        spot_id: int,
        anomalies: list[str],
    ) -> None:
        result = await session.execute(
            update(ParkingSpot)
            .where(ParkingSpot.parking_spot_id == spot_id)
            .values(
                status=SpotStatus.AVAILABLE,
                is_occupied=False,
                occupied_by=None,
                occupied_at=None,
            )
        )
        if result.rowcount == 0:
            anomalies.append(f"parking spot {spot_id} not found")

    async def _decrement_section(
        self,
        session: AsyncSession,
        section_id: int,
        anomalies: list[str],
    ) -> None:
        result = await session.execute(
            update(ParkingSection)
            .where(ParkingSection.parking_section_id == section_id)
            .values(
                reserved_count=case(
                    (ParkingSection.reserved_count > 0, ParkingSection.reserved_count - 1),
                    else_=0,
                )
            )
        )
        if result.rowcount == 0:
            anomalies.append(f"parking section {section_id} not found")

    async def _record_expiry_event(
        self,
        session: AsyncSession,
        candidate: ExpiryCandidate,
        now: datetime | ColumnElement[datetime],
    ) -> None:
        session.add(
            AuditEvent(
                user_id=candidate.user_id,
                reservation_id=candidate.reservation_id,
                action_type=AuditAction.RESERVATION_EXPIRED,
                description=(
                    f"Reservation #{candidate.reservation_id} expired: "
                    f"not started within the grace period"
                ),
                created_at=now,
            )
        )
        await session.flush()
