"""Parking spot and section models."""

import enum
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Enum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tappark.models.base import Base, BigIntId


class SpotStatus(str, enum.Enum):
    """Parking spot status enum."""

    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"


class ParkingSpot(Base):
    """ParkingSpot model representing an individually numbered space."""

    __tablename__ = "parking_spot"

    parking_spot_id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, autoincrement=True
    )
    parking_section_id: Mapped[int | None] = mapped_column(BigInteger)
    spot_number: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[SpotStatus] = mapped_column(
        Enum(SpotStatus, values_callable=lambda e: [m.value for m in e]),
        default=SpotStatus.AVAILABLE,
        nullable=False,
    )
    is_occupied: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    occupied_by: Mapped[int | None] = mapped_column(BigInteger)
    occupied_at: Mapped[datetime | None] = mapped_column(DateTime)

    __table_args__ = (
        Index("idx_parking_spot_section_status", "parking_section_id", "status"),
    )


class ParkingSection(Base):
    """
    ParkingSection model representing a capacity pool.

    A section either backs a set of numbered spots or stands alone as a
    counter-only pool for vehicle classes without numbered stalls.
    """

    __tablename__ = "parking_section"

    parking_section_id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, autoincrement=True
    )
    section_name: Mapped[str] = mapped_column(String(100), nullable=False)
    vehicle_type: Mapped[str | None] = mapped_column(String(50))
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reserved_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    parked_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @property
    def available_capacity(self) -> int:
        """Capacity not held by reservations or parked vehicles."""
        return max(self.capacity - self.reserved_count - self.parked_count, 0)
