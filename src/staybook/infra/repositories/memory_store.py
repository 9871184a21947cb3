"""In-process booking store for local runs and tests (STAYBOOK_STORE=memory).

Data lives in a dict guarded by a lock. Callers work through a
MemoryBookingSession obtained from InMemoryBookingStore.session(); its
lock_keys() takes one threading.Lock per key and holds it until the
session block exits, mirroring the advisory locks the Postgres store
holds until commit.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import date
from itertools import count
from typing import Iterable, Iterator

from staybook.domain.booking import Booking
from staybook.infra.repositories.bookings_repository import (
    BookingRowMissingError,
    GuestUnitTakenError,
)


def _ordered(bookings: Iterable[Booking]) -> list[Booking]:
    return sorted(bookings, key=lambda b: (b.check_in_date, b.id))


class InMemoryBookingStore:
    def __init__(self) -> None:
        self._items: dict[int, Booking] = {}
        self._ids = count(1)
        self._lock = threading.RLock()
        self._key_locks: dict[str, threading.Lock] = {}

    def find_by_guest_and_unit(self, guest_name: str, unit_id: str) -> list[Booking]:
        with self._lock:
            return _ordered(
                b for b in self._items.values()
                if b.guest_name == guest_name and b.unit_id == unit_id
            )

    def find_by_guest(self, guest_name: str) -> list[Booking]:
        with self._lock:
            return _ordered(b for b in self._items.values() if b.guest_name == guest_name)

    def find_by_unit_with_check_in_before(self, unit_id: str, before: date) -> list[Booking]:
        with self._lock:
            return _ordered(
                b for b in self._items.values()
                if b.unit_id == unit_id and b.check_in_date < before
            )

    def create(self, booking: Booking) -> Booking:
        with self._lock:
            if any(
                b.guest_name == booking.guest_name and b.unit_id == booking.unit_id
                for b in self._items.values()
            ):
                raise GuestUnitTakenError(f"unit {booking.unit_id} already booked by this guest")
            return self.insert_unchecked(booking)

    def update(self, booking_id: int, check_in_date: date, number_of_nights: int) -> Booking:
        with self._lock:
            current = self._items.get(booking_id)
            if current is None:
                raise BookingRowMissingError(booking_id)
            stored = current.rescheduled(check_in_date, number_of_nights)
            self._items[booking_id] = stored
            return stored

    def insert_unchecked(self, booking: Booking) -> Booking:
        """Store a booking without the uniqueness check. Used to seed tests."""
        with self._lock:
            stored = booking.with_id(next(self._ids))
            self._items[stored.id] = stored
            return stored

    def key_lock(self, key: str) -> threading.Lock:
        """Lock for one key. The map only grows, one entry per guest and unit seen."""
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())

    @contextmanager
    def session(self) -> Iterator[MemoryBookingSession]:
        """Unit of work; key locks taken inside are released on exit."""
        session = MemoryBookingSession(self)
        try:
            yield session
        finally:
            session.release()

    def reset(self) -> None:
        """Clear all bookings and key locks. For testing only."""
        with self._lock:
            self._items.clear()
            self._ids = count(1)
            self._key_locks.clear()


class MemoryBookingSession:
    """BookingStore view over an InMemoryBookingStore for one unit of work."""

    def __init__(self, store: InMemoryBookingStore):
        self._store = store
        self._held: list[threading.Lock] = []
        self._held_keys: set[str] = set()

    def find_by_guest_and_unit(self, guest_name: str, unit_id: str) -> list[Booking]:
        return self._store.find_by_guest_and_unit(guest_name, unit_id)

    def find_by_guest(self, guest_name: str) -> list[Booking]:
        return self._store.find_by_guest(guest_name)

    def find_by_unit_with_check_in_before(self, unit_id: str, before: date) -> list[Booking]:
        return self._store.find_by_unit_with_check_in_before(unit_id, before)

    def create(self, booking: Booking) -> Booking:
        return self._store.create(booking)

    def update(self, booking_id: int, check_in_date: date, number_of_nights: int) -> Booking:
        return self._store.update(booking_id, check_in_date, number_of_nights)

    def lock_keys(self, guest_name: str, unit_id: str) -> None:
        for key in sorted({f"unit:{unit_id}", f"guest:{guest_name}"}):
            if key in self._held_keys:
                continue
            key_lock = self._store.key_lock(key)
            key_lock.acquire()
            self._held.append(key_lock)
            self._held_keys.add(key)

    def release(self) -> None:
        while self._held:
            self._held.pop().release()
        self._held_keys.clear()
