"""Tests for the Postgres booking store.

Unit tests mock the psycopg2 cursor. The integration class runs only when
DATABASE_URL points at a migrated database.
"""

import os
from datetime import date, datetime
from unittest.mock import MagicMock, call

import pytest
from psycopg2 import errors as pg_errors

from staybook.domain.booking import Booking
from staybook.infra.repositories.bookings_repository import (
    BookingRowMissingError,
    GuestUnitTakenError,
    PgBookingStore,
)


@pytest.fixture
def cur():
    """Mocked psycopg2 cursor."""
    return MagicMock()


def _row(id_=1, guest="GuestA", unit="1", check_in=date(2025, 3, 10), nights=5):
    return (id_, guest, unit, check_in, nights)


def _sql(cur) -> str:
    return " ".join(cur.execute.call_args[0][0].split())


def _params(cur):
    return cur.execute.call_args[0][1]


class TestFinders:
    def test_find_by_guest_and_unit(self, cur):
        cur.fetchall.return_value = [_row()]

        result = PgBookingStore(cur).find_by_guest_and_unit("GuestA", "1")

        assert result == [
            Booking(id=1, guest_name="GuestA", unit_id="1", check_in_date=date(2025, 3, 10), number_of_nights=5)
        ]
        assert "guest_name = %s AND unit_id = %s" in _sql(cur)
        assert _params(cur) == ("GuestA", "1")

    def test_find_by_guest(self, cur):
        cur.fetchall.return_value = []

        assert PgBookingStore(cur).find_by_guest("GuestA") == []
        assert "WHERE guest_name = %s ORDER BY" in _sql(cur)
        assert _params(cur) == ("GuestA",)

    def test_find_by_unit_with_check_in_before(self, cur):
        cur.fetchall.return_value = [_row(), _row(id_=2, guest="GuestB", check_in=date(2025, 3, 15))]

        result = PgBookingStore(cur).find_by_unit_with_check_in_before("1", date(2025, 3, 20))

        assert [b.id for b in result] == [1, 2]
        assert "unit_id = %s AND check_in_date < %s" in _sql(cur)
        assert _params(cur) == ("1", date(2025, 3, 20))

    def test_timestamp_column_is_truncated_to_date(self, cur):
        cur.fetchall.return_value = [_row(check_in=datetime(2025, 3, 10, 0, 0))]

        result = PgBookingStore(cur).find_by_guest("GuestA")

        assert result[0].check_in_date == date(2025, 3, 10)
        assert type(result[0].check_in_date) is date


class TestWrites:
    def test_create_returns_stored_booking(self, cur):
        cur.fetchone.return_value = _row(id_=9)
        candidate = Booking(guest_name="GuestA", unit_id="1", check_in_date=date(2025, 3, 10), number_of_nights=5)

        created = PgBookingStore(cur).create(candidate)

        assert created == candidate.with_id(9)
        assert "INSERT INTO bookings" in _sql(cur)
        assert _params(cur) == ("GuestA", "1", date(2025, 3, 10), 5)

    def test_create_unique_violation(self, cur):
        cur.execute.side_effect = pg_errors.UniqueViolation("duplicate key value")
        candidate = Booking(guest_name="GuestA", unit_id="1", check_in_date=date(2025, 3, 10), number_of_nights=5)

        with pytest.raises(GuestUnitTakenError):
            PgBookingStore(cur).create(candidate)

    def test_update(self, cur):
        cur.fetchone.return_value = _row(id_=3, check_in=date(2025, 4, 1), nights=2)

        updated = PgBookingStore(cur).update(3, date(2025, 4, 1), 2)

        assert updated.check_in_date == date(2025, 4, 1)
        assert updated.number_of_nights == 2
        assert "UPDATE bookings" in _sql(cur)
        assert _params(cur) == (date(2025, 4, 1), 2, 3)

    def test_update_missing_row(self, cur):
        cur.fetchone.return_value = None

        with pytest.raises(BookingRowMissingError) as exc_info:
            PgBookingStore(cur).update(3, date(2025, 4, 1), 2)

        assert exc_info.value.booking_id == 3


class TestLockKeys:
    def test_locks_guest_and_unit_in_sorted_order(self, cur):
        PgBookingStore(cur).lock_keys("GuestA", "1")

        assert cur.execute.call_args_list == [
            call("SELECT pg_advisory_xact_lock(hashtext(%s))", ("guest:GuestA",)),
            call("SELECT pg_advisory_xact_lock(hashtext(%s))", ("unit:1",)),
        ]


_skip_no_db = pytest.mark.skipif(
    not os.environ.get("DATABASE_URL"),
    reason="DATABASE_URL not set - skipping DB integration tests",
)


@_skip_no_db
class TestPgBookingStoreIntegration:
    """Runs against a migrated database; every test rolls back."""

    @pytest.fixture
    def pg_cur(self):
        from staybook.infra.db import get_conn

        conn = get_conn()
        try:
            with conn.cursor() as cur:
                yield cur
        finally:
            conn.rollback()
            conn.close()

    def test_roundtrip(self, pg_cur):
        store = PgBookingStore(pg_cur)
        store.lock_keys("it-guest", "it-unit")

        created = store.create(
            Booking(guest_name="it-guest", unit_id="it-unit", check_in_date=date(2030, 1, 1), number_of_nights=3)
        )
        moved = store.update(created.id, date(2030, 1, 2), 4)

        assert store.find_by_guest_and_unit("it-guest", "it-unit") == [moved]
        assert store.find_by_unit_with_check_in_before("it-unit", date(2030, 1, 2)) == []

    def test_unique_constraint(self, pg_cur):
        store = PgBookingStore(pg_cur)
        booking = Booking(guest_name="it-guest", unit_id="it-unit", check_in_date=date(2030, 1, 1), number_of_nights=3)
        store.create(booking)

        with pytest.raises(GuestUnitTakenError):
            store.create(booking)
