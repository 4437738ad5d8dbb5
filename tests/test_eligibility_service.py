"""Tests for EligibilityScanner."""

from datetime import timedelta

import pytest
from sqlalchemy import text

from conftest import NOW
from tappark.models import (
    AuditEvent,
    ParkingSection,
    ParkingSpot,
    Reservation,
    ReservationStatus,
)
from tappark.schemas.expiry import CAPACITY_ONLY, SpotTarget
from tappark.services.eligibility_service import EligibilityScanner
from tappark.services.expiration_service import ReservationExpirer


class TestEligibilityScanner:
    """Tests for the grace period query."""

    @pytest.fixture
    def scanner(self, store):
        return EligibilityScanner(store)

    @pytest.mark.asyncio
    async def test_empty_store(self, scanner):
        """No reservations means no candidates."""
        assert await scanner.find_expired_reservations(15, now=NOW) == []

    @pytest.mark.asyncio
    async def test_boundary_is_inclusive(self, scanner, seed):
        """A reservation exactly grace_period old is eligible, one minute younger is not."""
        exact = await seed.reservation(age_minutes=15)
        await seed.reservation(age_minutes=14)

        candidates = await scanner.find_expired_reservations(15, now=NOW)

        assert [c.reservation_id for c in candidates] == [exact]

    @pytest.mark.asyncio
    async def test_only_unstarted_reserved(self, scanner, seed):
        """Started, active, completed and invalid reservations are never candidates."""
        eligible = await seed.reservation(age_minutes=30)
        await seed.reservation(age_minutes=30, status=ReservationStatus.ACTIVE)
        await seed.reservation(age_minutes=30, status=ReservationStatus.COMPLETED)
        await seed.reservation(age_minutes=30, status=ReservationStatus.INVALID)
        await seed.reservation(
            age_minutes=30, start_time=NOW - timedelta(minutes=20)
        )

        candidates = await scanner.find_expired_reservations(15, now=NOW)

        assert [c.reservation_id for c in candidates] == [eligible]

    @pytest.mark.asyncio
    async def test_candidate_carries_target(self, scanner, seed):
        """Candidates carry spot and section so expiry needs no extra lookup."""
        section_id = await seed.section()
        spot_id = await seed.spot(section_id)
        spot_res = await seed.reservation(
            age_minutes=40, section_id=section_id, spot_id=spot_id, user_id=3
        )
        zero_res = await seed.reservation(age_minutes=30, section_id=section_id, spot_id=0)
        null_res = await seed.reservation(age_minutes=20, section_id=section_id, spot_id=None)

        candidates = await scanner.find_expired_reservations(15, now=NOW)

        by_id = {c.reservation_id: c for c in candidates}
        assert by_id[spot_res].target == SpotTarget(spot_id)
        assert by_id[spot_res].user_id == 3
        assert by_id[spot_res].section_id == section_id
        assert by_id[zero_res].target is CAPACITY_ONLY
        assert by_id[null_res].target is CAPACITY_ONLY

    @pytest.mark.asyncio
    async def test_ordered_by_creation(self, scanner, seed):
        """Oldest reservations come first."""
        newer = await seed.reservation(age_minutes=20)
        older = await seed.reservation(age_minutes=60)

        candidates = await scanner.find_expired_reservations(15, now=NOW)

        assert [c.reservation_id for c in candidates] == [older, newer]

    @pytest.mark.asyncio
    async def test_zero_grace_period(self, scanner, seed):
        """With no grace period every unstarted reservation is eligible."""
        res_id = await seed.reservation(age_minutes=0)

        candidates = await scanner.find_expired_reservations(0, now=NOW)

        assert [c.reservation_id for c in candidates] == [res_id]

    @pytest.mark.asyncio
    async def test_negative_grace_period_rejected(self, scanner):
        with pytest.raises(ValueError):
            await scanner.find_expired_reservations(-1, now=NOW)

    @pytest.mark.asyncio
    async def test_defaults_to_database_clock(self, scanner, seed):
        """Rows stamped by the database are judged against the database clock."""
        async with scanner.store.transaction() as session:
            await session.execute(
                text(
                    "INSERT INTO reservations (user_id, booking_status, updated_at) "
                    "VALUES (7, 'reserved', CURRENT_TIMESTAMP)"
                )
            )

        assert await scanner.find_expired_reservations(15) == []
        assert len(await scanner.find_expired_reservations(0)) == 1


class TestSharedSchema:
    """The engine reads rows written by the reservation and session services."""

    @pytest.mark.asyncio
    async def test_rows_inserted_with_shared_column_names(self, store):
        async with store.transaction() as session:
            await session.execute(
                text(
                    "INSERT INTO parking_section "
                    "(parking_section_id, section_name, capacity, reserved_count, parked_count) "
                    "VALUES (5, 'Car B', 20, 4, 0)"
                )
            )
            await session.execute(
                text(
                    "INSERT INTO parking_spot (parking_spot_id, parking_section_id, "
                    "spot_number, status, is_occupied) "
                    "VALUES (11, 5, 'B-3', 'reserved', 0)"
                )
            )
            await session.execute(
                text(
                    "INSERT INTO reservations (reservation_id, user_id, parking_spots_id, "
                    "parking_section_id, booking_status, time_stamp, updated_at) "
                    "VALUES (42, 9, 11, 5, 'reserved', '2026-03-14 11:44:00', '2026-03-14 11:44:00')"
                )
            )

        candidates = await EligibilityScanner(store).find_expired_reservations(15, now=NOW)

        assert len(candidates) == 1
        assert candidates[0].reservation_id == 42
        assert candidates[0].target == SpotTarget(11)
        assert candidates[0].section_id == 5
        assert candidates[0].created_at == NOW - timedelta(minutes=16)

        outcome = await ReservationExpirer(store).expire_one(candidates[0], now=NOW)

        assert outcome.succeeded
        result = await store.execute(
            text("SELECT reserved_count FROM parking_section WHERE parking_section_id = 5")
        )
        assert result.scalar_one() == 3
        result = await store.execute(
            text("SELECT status FROM parking_spot WHERE parking_spot_id = 11")
        )
        assert result.scalar_one() == "available"
        result = await store.execute(
            text("SELECT COUNT(*) FROM user_logs WHERE reservation_id = 42")
        )
        assert result.scalar_one() == 1

    def test_table_and_column_names(self):
        assert ParkingSpot.__tablename__ == "parking_spot"
        assert ParkingSection.__tablename__ == "parking_section"
        assert AuditEvent.__tablename__ == "user_logs"
        columns = Reservation.__table__.c
        assert "parking_spots_id" in columns
        assert "time_stamp" in columns
        assert "created_at" not in columns
