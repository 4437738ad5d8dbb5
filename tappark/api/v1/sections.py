"""Parking section API endpoints."""

from fastapi import APIRouter

from tappark.api.v1.dependencies import ReconciliationServiceDep
from tappark.schemas.reconciliation import SectionReconciliation

router = APIRouter()


@router.get(
    "/reconciliation",
    response_model=list[SectionReconciliation],
    summary="Compare section counters with reservations",
)
async def get_section_reconciliation(
    reconciliation_service: ReconciliationServiceDep,
    vehicle_type: str | None = None,
    mismatches_only: bool = False,
) -> list[SectionReconciliation]:
    """
    Report stored reserved/parked counters next to the counts derived from
    capacity-only reservations, so an operator can spot drift.
    """
    if mismatches_only:
        return await reconciliation_service.get_mismatches(vehicle_type)
    return await reconciliation_service.get_section_report(vehicle_type)
