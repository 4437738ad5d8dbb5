"""Audit event reads for notification consumers."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tappark.models.audit import AuditAction, AuditEvent


class AuditService:
    """Service for reading the append-only audit trail."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_events_after(
        self,
        after_id: int = 0,
        limit: int = 100,
        action_type: AuditAction | None = None,
    ) -> list[AuditEvent]:
        """
        Get audit events with an id greater than after_id, oldest first.

        Consumers keep the last id they processed and pass it back on the
        next poll.
        """
        query = select(AuditEvent).where(AuditEvent.audit_event_id > after_id)
        if action_type:
            query = query.where(AuditEvent.action_type == action_type)
        query = query.order_by(AuditEvent.audit_event_id).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_reservation_events(self, reservation_id: int) -> list[AuditEvent]:
        """Get audit events recorded for one reservation."""
        result = await self.db.execute(
            select(AuditEvent)
            .where(AuditEvent.reservation_id == reservation_id)
            .order_by(AuditEvent.audit_event_id)
        )
        return list(result.scalars().all())
