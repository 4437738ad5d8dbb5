"""Audit event model."""

import enum
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Enum, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from tappark.models.base import Base, BigIntId


class AuditAction(str, enum.Enum):
    """Audit action type enum."""

    RESERVATION_EXPIRED = "RESERVATION_EXPIRED"


class AuditEvent(Base):
    """Append-only record of a state change, consumed by notification delivery."""

    __tablename__ = "user_logs"

    audit_event_id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    reservation_id: Mapped[int | None] = mapped_column(BigInteger)
    action_type: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, native_enum=False, length=50), nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        "timestamp",
        DateTime,
        server_default=func.current_timestamp(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_user_logs_reservation", "reservation_id"),
        Index("idx_user_logs_action", "action_type"),
    )
