"""Reservation model."""

import enum
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Enum, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from tappark.models.base import Base, BigIntId


class ReservationStatus(str, enum.Enum):
    """Reservation status enum."""

    RESERVED = "reserved"
    ACTIVE = "active"
    COMPLETED = "completed"
    INVALID = "invalid"


class Reservation(Base):
    """Reservation model representing one booking attempt for a spot or section."""

    __tablename__ = "reservations"

    reservation_id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # NULL or 0 means the reservation holds section capacity only
    parking_spot_id: Mapped[int | None] = mapped_column(
        "parking_spots_id", BigInteger
    )
    parking_section_id: Mapped[int | None] = mapped_column(BigInteger)
    booking_status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus, values_callable=lambda e: [m.value for m in e]),
        default=ReservationStatus.RESERVED,
        nullable=False,
    )
    spot_number: Mapped[str | None] = mapped_column(String(20))
    created_at: Mapped[datetime] = mapped_column(
        "time_stamp",
        DateTime,
        server_default=func.current_timestamp(),
        nullable=False,
    )
    start_time: Mapped[datetime | None] = mapped_column(DateTime)
    end_time: Mapped[datetime | None] = mapped_column(DateTime)
    waiting_end_time: Mapped[datetime | None] = mapped_column(DateTime)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (
        Index("idx_reservations_status_start", "booking_status", "start_time"),
        Index("idx_reservations_time_stamp", "time_stamp"),
        Index("idx_reservations_section", "parking_section_id"),
        Index("idx_reservations_user_id", "user_id"),
    )
