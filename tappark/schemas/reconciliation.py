"""Section reconciliation schemas."""

from typing import TYPE_CHECKING

from tappark.schemas.common import BaseSchema

if TYPE_CHECKING:
    from tappark.models.parking import ParkingSection

STATUS_OK = "OK"
STATUS_RESERVED_MISMATCH = "RESERVED_COUNT_MISMATCH"
STATUS_PARKED_MISMATCH = "PARKED_COUNT_MISMATCH"


class SectionReconciliation(BaseSchema):
    """Stored counters of one section next to the counts derived from reservations."""

    parking_section_id: int
    section_name: str
    vehicle_type: str | None
    capacity: int
    reserved_count: int
    parked_count: int
    actual_reserved: int
    actual_active: int
    available_capacity: int
    over_capacity: bool
    status: str

    @property
    def is_consistent(self) -> bool:
        return self.status == STATUS_OK and not self.over_capacity

    @classmethod
    def from_counts(
        cls,
        section: "ParkingSection",
        actual_reserved: int,
        actual_active: int,
    ) -> "SectionReconciliation":
        if section.reserved_count != actual_reserved:
            status = STATUS_RESERVED_MISMATCH
        elif section.parked_count != actual_active:
            status = STATUS_PARKED_MISMATCH
        else:
            status = STATUS_OK

        return cls(
            parking_section_id=section.parking_section_id,
            section_name=section.section_name,
            vehicle_type=section.vehicle_type,
            capacity=section.capacity,
            reserved_count=section.reserved_count,
            parked_count=section.parked_count,
            actual_reserved=actual_reserved,
            actual_active=actual_active,
            available_capacity=section.available_capacity,
            over_capacity=section.reserved_count + section.parked_count > section.capacity,
            status=status,
        )
