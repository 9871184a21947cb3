"""Bookings repository - persistence for booking records.

Uses raw SQL with psycopg2 (no ORM). Every method runs on the cursor the
store was built with, so a whole check-then-write sequence shares one
transaction (see infra.db.txn).
"""

from __future__ import annotations

from datetime import date

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from staybook.domain.booking import Booking

_COLUMNS = "id, guest_name, unit_id, check_in_date, number_of_nights"


class GuestUnitTakenError(Exception):
    """Insert hit UNIQUE(guest_name, unit_id)."""


class BookingRowMissingError(LookupError):
    def __init__(self, booking_id: int):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} does not exist")


def _row_to_booking(row: tuple) -> Booking:
    check_in = row[3]
    # Tolerate timestamp columns from older schemas; only the date matters.
    if hasattr(check_in, "date"):
        check_in = check_in.date()
    return Booking(
        id=row[0],
        guest_name=row[1],
        unit_id=row[2],
        check_in_date=check_in,
        number_of_nights=row[4],
    )


class PgBookingStore:
    """Booking store over a psycopg2 cursor (caller manages the transaction)."""

    def __init__(self, cur: PgCursor):
        self._cur = cur

    def _select(self, where: str, params: tuple) -> list[Booking]:
        self._cur.execute(
            f"SELECT {_COLUMNS} FROM bookings WHERE {where} ORDER BY check_in_date, id",
            params,
        )
        return [_row_to_booking(r) for r in self._cur.fetchall()]

    def find_by_guest_and_unit(self, guest_name: str, unit_id: str) -> list[Booking]:
        return self._select("guest_name = %s AND unit_id = %s", (guest_name, unit_id))

    def find_by_guest(self, guest_name: str) -> list[Booking]:
        return self._select("guest_name = %s", (guest_name,))

    def find_by_unit_with_check_in_before(self, unit_id: str, before: date) -> list[Booking]:
        return self._select("unit_id = %s AND check_in_date < %s", (unit_id, before))

    def create(self, booking: Booking) -> Booking:
        """Insert a booking and return it with its assigned id.

        Raises:
            GuestUnitTakenError: The (guest_name, unit_id) pair already exists.
        """
        try:
            self._cur.execute(
                f"""
                INSERT INTO bookings (guest_name, unit_id, check_in_date, number_of_nights)
                VALUES (%s, %s, %s, %s)
                RETURNING {_COLUMNS}
                """,
                (
                    booking.guest_name,
                    booking.unit_id,
                    booking.check_in_date,
                    booking.number_of_nights,
                ),
            )
        except pg_errors.UniqueViolation as exc:
            raise GuestUnitTakenError(str(exc)) from exc
        return _row_to_booking(self._cur.fetchone())

    def update(self, booking_id: int, check_in_date: date, number_of_nights: int) -> Booking:
        """Move a booking to new dates.

        Raises:
            BookingRowMissingError: No row with booking_id.
        """
        self._cur.execute(
            f"""
            UPDATE bookings
            SET check_in_date = %s, number_of_nights = %s, updated_at = now()
            WHERE id = %s
            RETURNING {_COLUMNS}
            """,
            (check_in_date, number_of_nights, booking_id),
        )
        row = self._cur.fetchone()
        if row is None:
            raise BookingRowMissingError(booking_id)
        return _row_to_booking(row)

    def lock_keys(self, guest_name: str, unit_id: str) -> None:
        """Take transaction-scoped advisory locks on the unit and the guest.

        Keys are locked in sorted order so two requests sharing both keys
        cannot deadlock. Locks are released on commit or rollback.
        """
        for key in sorted({f"unit:{unit_id}", f"guest:{guest_name}"}):
            self._cur.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (key,))
