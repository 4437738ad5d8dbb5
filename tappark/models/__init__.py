"""SQLAlchemy models."""

from tappark.models.audit import AuditAction, AuditEvent
from tappark.models.base import Base
from tappark.models.parking import ParkingSection, ParkingSpot, SpotStatus
from tappark.models.reservation import Reservation, ReservationStatus

__all__ = [
    "Base",
    "Reservation",
    "ReservationStatus",
    "ParkingSpot",
    "ParkingSection",
    "SpotStatus",
    "AuditEvent",
    "AuditAction",
]
