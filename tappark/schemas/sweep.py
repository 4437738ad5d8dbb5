"""Sweep and audit event schemas."""

from datetime import datetime

from tappark.models.audit import AuditAction
from tappark.schemas.common import BaseSchema


class SweepSummaryResponse(BaseSchema):
    """Schema for a sweep summary."""

    attempted: int
    succeeded: int
    failed: int
    ignored: int = 0
    skipped: bool = False
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    failed_reservation_ids: list[int] = []


class SweepStatusResponse(BaseSchema):
    """Schema for the engine's current configuration and state."""

    running: bool
    grace_period_minutes: int
    interval_seconds: float
    scheduler_active: bool
    last_summary: SweepSummaryResponse | None = None


class AuditEventResponse(BaseSchema):
    """Schema for an audit event."""

    audit_event_id: int
    user_id: int
    reservation_id: int | None
    action_type: AuditAction
    description: str | None
    created_at: datetime
