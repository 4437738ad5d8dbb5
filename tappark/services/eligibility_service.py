"""Scanner for reservations past their grace period."""

from datetime import datetime, timedelta

from sqlalchemy import and_, select

from tappark.database import CapacityStore
from tappark.models.reservation import Reservation, ReservationStatus
from tappark.schemas.expiry import ExpiryCandidate, target_from_spot_id


class EligibilityScanner:
    """Read-only query for reservations whose holders never arrived."""

    def __init__(self, store: CapacityStore):
        self.store = store

    async def find_expired_reservations(
        self,
        grace_period_minutes: int,
        now: datetime | None = None,
    ) -> list[ExpiryCandidate]:
        """
        Find reservations eligible for expiry.

        A reservation is eligible when it is still reserved, its session never
        started, and at least grace_period_minutes have passed since it was
        created (the boundary is inclusive).

        Args:
            grace_period_minutes: Grace period threshold in minutes
            now: Reference time, defaults to the database clock

        Returns:
            Snapshot of candidates in creation order

        Raises:
            ValueError: If the grace period is negative
        """
        if grace_period_minutes < 0:
            raise ValueError("grace_period_minutes must not be negative")

        if now is None:
            now = await self.store.current_timestamp()
        cutoff = now - timedelta(minutes=grace_period_minutes)

        async with self.store.session() as session:
            result = await session.execute(
                select(
                    Reservation.reservation_id,
                    Reservation.user_id,
                    Reservation.parking_spot_id,
                    Reservation.parking_section_id,
                    Reservation.created_at,
                )
                .where(
                    and_(
                        Reservation.booking_status == ReservationStatus.RESERVED,
                        Reservation.start_time.is_(None),
                        Reservation.created_at <= cutoff,
                    )
                )
                .order_by(Reservation.created_at, Reservation.reservation_id)
            )
            rows = result.all()

        return [
            ExpiryCandidate(
                reservation_id=row.reservation_id,
                user_id=row.user_id,
                target=target_from_spot_id(row.parking_spot_id),
                section_id=row.parking_section_id,
                created_at=row.created_at,
            )
            for row in rows
        ]
