"""
Shared fixtures for the expiration engine tests.

Every test gets its own SQLite database file so transactions behave like
they do against MySQL: each store session is a separate connection.
"""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy import select

from tappark.database import CapacityStore
from tappark.models import (
    AuditEvent,
    Base,
    ParkingSection,
    ParkingSpot,
    Reservation,
    ReservationStatus,
    SpotStatus,
)

NOW = datetime(2026, 3, 14, 12, 0, 0)


@pytest_asyncio.fixture
async def store(tmp_path):
    """Create a store backed by a fresh SQLite database."""
    store = CapacityStore(f"sqlite+aiosqlite:///{tmp_path / 'tappark.db'}")
    async with store.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield store
    await store.dispose()


class Seeder:
    """Inserts rows the way the reservation-creation collaborator would."""

    def __init__(self, store: CapacityStore):
        self.store = store

    async def section(
        self,
        name: str = "Motorcycle A",
        capacity: int = 10,
        reserved_count: int = 0,
        parked_count: int = 0,
        vehicle_type: str = "motorcycle",
    ) -> int:
        async with self.store.transaction() as session:
            section = ParkingSection(
                section_name=name,
                vehicle_type=vehicle_type,
                capacity=capacity,
                reserved_count=reserved_count,
                parked_count=parked_count,
            )
            session.add(section)
            await session.flush()
            return section.parking_section_id

    async def spot(
        self,
        section_id: int | None,
        number: str = "A-1",
        status: SpotStatus = SpotStatus.RESERVED,
    ) -> int:
        async with self.store.transaction() as session:
            spot = ParkingSpot(
                parking_section_id=section_id,
                spot_number=number,
                status=status,
                is_occupied=status == SpotStatus.OCCUPIED,
                occupied_by=7 if status == SpotStatus.OCCUPIED else None,
                occupied_at=NOW if status == SpotStatus.OCCUPIED else None,
            )
            session.add(spot)
            await session.flush()
            return spot.parking_spot_id

    async def reservation(
        self,
        age_minutes: float,
        section_id: int | None = None,
        spot_id: int | None = 0,
        user_id: int = 7,
        status: ReservationStatus = ReservationStatus.RESERVED,
        start_time: datetime | None = None,
    ) -> int:
        created_at = NOW - timedelta(minutes=age_minutes)
        async with self.store.transaction() as session:
            reservation = Reservation(
                user_id=user_id,
                parking_spot_id=spot_id,
                parking_section_id=section_id,
                booking_status=status,
                created_at=created_at,
                updated_at=created_at,
                start_time=start_time,
            )
            session.add(reservation)
            await session.flush()
            return reservation.reservation_id


@pytest.fixture
def seed(store):
    """Row factory bound to the test store."""
    return Seeder(store)


async def fetch(store: CapacityStore, model, pk: int):
    """Load one row in a fresh session."""
    async with store.session() as session:
        return await session.get(model, pk)


async def audit_events(store: CapacityStore, reservation_id: int) -> list[AuditEvent]:
    """Load audit events for a reservation in a fresh session."""
    async with store.session() as session:
        result = await session.execute(
            select(AuditEvent).where(AuditEvent.reservation_id == reservation_id)
        )
        return list(result.scalars().all())
