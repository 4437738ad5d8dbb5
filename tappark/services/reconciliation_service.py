"""Section counter reconciliation report."""

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tappark.models.parking import ParkingSection
from tappark.models.reservation import Reservation, ReservationStatus
from tappark.schemas.reconciliation import SectionReconciliation


class ReconciliationService:
    """
    Compares stored section counters with the reservation rows behind them.

    Only capacity-only reservations are counted, matching how the counters
    are maintained for counter-only sections. Read-only.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_section_report(
        self,
        vehicle_type: str | None = None,
    ) -> list[SectionReconciliation]:
        """Build the report for every section, optionally filtered by vehicle type."""
        capacity_only = or_(
            Reservation.parking_spot_id.is_(None),
            Reservation.parking_spot_id == 0,
        )
        counts = (
            select(
                Reservation.parking_section_id.label("section_id"),
                func.sum(
                    case((Reservation.booking_status == ReservationStatus.RESERVED, 1), else_=0)
                ).label("reserved"),
                func.sum(
                    case((Reservation.booking_status == ReservationStatus.ACTIVE, 1), else_=0)
                ).label("active"),
            )
            .where(and_(capacity_only, Reservation.parking_section_id.is_not(None)))
            .group_by(Reservation.parking_section_id)
            .subquery()
        )

        query = (
            select(ParkingSection, counts.c.reserved, counts.c.active)
            .outerjoin(
                counts, counts.c.section_id == ParkingSection.parking_section_id
            )
            .order_by(ParkingSection.section_name, ParkingSection.parking_section_id)
        )
        if vehicle_type:
            query = query.where(ParkingSection.vehicle_type == vehicle_type)

        result = await self.db.execute(query)

        report = []
        for section, reserved, active in result.all():
            report.append(
                SectionReconciliation.from_counts(
                    section,
                    actual_reserved=int(reserved or 0),
                    actual_active=int(active or 0),
                )
            )
        return report

    async def get_mismatches(
        self,
        vehicle_type: str | None = None,
    ) -> list[SectionReconciliation]:
        """Sections whose counters disagree with their reservations."""
        report = await self.get_section_report(vehicle_type)
        return [row for row in report if not row.is_consistent]
