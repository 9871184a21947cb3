"""Availability engine - decides whether a booking may be committed.

Create rules, checked in order (first failure wins):
  1. a guest cannot book the same unit twice, whatever the dates
  2. a guest cannot hold bookings in two units
  3. the unit must be free on [check_in, check_out)

Update rule:
  the new range must not overlap any other booking on the same unit
  (the booking being replaced is ignored). Guest and unit never change on
  update, so the guest rules are not re-checked.

Overlap formula:  (existing_checkin < new_checkout) AND (existing_checkout > new_checkin)
The first half is pushed to the store query, the second is applied here.

The engine holds no state and never writes; persisting an approved
booking is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Protocol

from staybook.domain.booking import Booking
from staybook.observability.logging import get_logger
from staybook.observability.redaction import booking_log_context

logger = get_logger(__name__)


class RejectionReason(str, Enum):
    SAME_UNIT_TWICE = "same_unit_twice"
    GUEST_IN_OTHER_UNIT = "guest_in_other_unit"
    UNIT_OCCUPIED = "unit_occupied"
    UPDATE_OVERLAP = "update_overlap"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


# Client-facing wording. Callers match on these strings, keep them stable.
_MESSAGES = {
    RejectionReason.SAME_UNIT_TWICE: "The given guest name cannot book the same unit multiple times",
    RejectionReason.GUEST_IN_OTHER_UNIT: "The same guest cannot be in multiple units at the same time",
    RejectionReason.UNIT_OCCUPIED: "For the given check-in date, the unit is already occupied",
    RejectionReason.UPDATE_OVERLAP: "The updated booking would overlap with existing bookings for the same unit",
}


@dataclass(frozen=True)
class Outcome:
    approved: bool
    reason: str
    code: RejectionReason | None = None

    @classmethod
    def approve(cls) -> Outcome:
        return cls(approved=True, reason="OK")

    @classmethod
    def reject(cls, code: RejectionReason) -> Outcome:
        return cls(approved=False, reason=code.message, code=code)


class BookingStore(Protocol):
    """Persistence boundary used by the engine and the booking service."""

    def find_by_guest_and_unit(self, guest_name: str, unit_id: str) -> list[Booking]: ...

    def find_by_guest(self, guest_name: str) -> list[Booking]: ...

    def find_by_unit_with_check_in_before(self, unit_id: str, before: date) -> list[Booking]: ...

    def create(self, booking: Booking) -> Booking: ...

    def update(self, booking_id: int, check_in_date: date, number_of_nights: int) -> Booking: ...

    def lock_keys(self, guest_name: str, unit_id: str) -> None: ...


def _overlapping(
    store: BookingStore,
    candidate: Booking,
    exclude_id: int | None = None,
) -> list[Booking]:
    """Bookings on candidate's unit whose range intersects candidate's."""
    starts_before_checkout = store.find_by_unit_with_check_in_before(
        candidate.unit_id, candidate.check_out_date
    )
    return [
        b
        for b in starts_before_checkout
        if (exclude_id is None or b.id != exclude_id) and candidate.overlaps(b)
    ]


def _rejected(candidate: Booking, code: RejectionReason, **fields) -> Outcome:
    logger.info(
        "booking rejected",
        extra={
            "extra_fields": booking_log_context(
                guest_name=candidate.guest_name,
                unit_id=candidate.unit_id,
                reason_code=code.value,
                check_in=candidate.check_in_date,
                nights=candidate.number_of_nights,
                **fields,
            ),
        },
    )
    return Outcome.reject(code)


def evaluate_create(store: BookingStore, candidate: Booking) -> Outcome:
    """Decide whether a new booking may be created.

    Args:
        store: Booking store to read conflicts from.
        candidate: Fully populated booking without an id.

    Returns:
        Outcome; approved, or rejected with the first failing rule.
    """
    if store.find_by_guest_and_unit(candidate.guest_name, candidate.unit_id):
        return _rejected(candidate, RejectionReason.SAME_UNIT_TWICE)

    if store.find_by_guest(candidate.guest_name):
        return _rejected(candidate, RejectionReason.GUEST_IN_OTHER_UNIT)

    conflicts = _overlapping(store, candidate)
    if conflicts:
        return _rejected(
            candidate,
            RejectionReason.UNIT_OCCUPIED,
            conflicting_booking_id=conflicts[0].id,
        )

    return Outcome.approve()


def evaluate_update(store: BookingStore, updated: Booking, existing_id: int) -> Outcome:
    """Decide whether an existing booking may move to updated's dates.

    Args:
        store: Booking store to read conflicts from.
        updated: Proposed values; guest and unit match the stored record.
        existing_id: Id of the record being replaced, excluded from conflicts.

    Returns:
        Outcome; approved, or rejected with UPDATE_OVERLAP.
    """
    conflicts = _overlapping(store, updated, exclude_id=existing_id)
    if conflicts:
        return _rejected(
            updated,
            RejectionReason.UPDATE_OVERLAP,
            booking_id=existing_id,
            conflicting_booking_id=conflicts[0].id,
        )

    return Outcome.approve()
