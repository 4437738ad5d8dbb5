"""Audit event API endpoints."""

from fastapi import APIRouter, Query

from tappark.api.v1.dependencies import AuditServiceDep
from tappark.models.audit import AuditAction
from tappark.schemas.sweep import AuditEventResponse

router = APIRouter()


@router.get(
    "",
    response_model=list[AuditEventResponse],
    summary="Poll audit events",
)
async def list_audit_events(
    audit_service: AuditServiceDep,
    after_id: int = Query(0, ge=0, description="Last audit event id already processed"),
    limit: int = Query(100, ge=1, le=500, description="Maximum events to return"),
    action_type: AuditAction | None = None,
) -> list[AuditEventResponse]:
    """
    Get audit events newer than after_id, oldest first.

    Notification delivery polls this with the last id it has processed.
    """
    events = await audit_service.get_events_after(
        after_id=after_id,
        limit=limit,
        action_type=action_type,
    )
    return [AuditEventResponse.model_validate(e) for e in events]


@router.get(
    "/reservations/{reservation_id}",
    response_model=list[AuditEventResponse],
    summary="Get audit events for a reservation",
)
async def get_reservation_audit_events(
    reservation_id: int,
    audit_service: AuditServiceDep,
) -> list[AuditEventResponse]:
    """Get every audit event recorded for one reservation."""
    events = await audit_service.get_reservation_events(reservation_id)
    return [AuditEventResponse.model_validate(e) for e in events]
