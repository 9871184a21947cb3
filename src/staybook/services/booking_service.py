"""Booking service - check-then-write orchestration for bookings.

Rules:
- Every mutation is evaluated by the availability engine first.
- Nothing is written unless the engine approves.
- With key_locks on, the unit and the guest are locked before reading, so
  concurrent requests on either key are serialized through the write.
  Without it two requests can both pass evaluation and both commit.
- The store passed in must be scoped to one transaction (or memory session)
  that the caller commits.
"""

from __future__ import annotations

from staybook.domain.availability import (
    BookingStore,
    Outcome,
    RejectionReason,
    evaluate_create,
    evaluate_update,
)
from staybook.domain.booking import Booking
from staybook.infra.repositories.bookings_repository import GuestUnitTakenError
from staybook.observability.logging import get_logger
from staybook.observability.redaction import booking_log_context

logger = get_logger(__name__)


# ── Exceptions ───────────────────────────────────────────


class BookingRejectedError(Exception):
    """The availability engine refused the booking."""

    def __init__(self, outcome: Outcome):
        self.outcome = outcome
        super().__init__(outcome.reason)


class BookingNotFoundError(Exception):
    message = "Booking not found"

    def __init__(self) -> None:
        super().__init__(self.message)


class DuplicateBookingError(Exception):
    """More than one record for one (guest, unit) pair: storage invariant broken."""

    message = "Multiple bookings found for the same guest and unit. Please contact the developer."

    def __init__(self, count: int):
        self.count = count
        super().__init__(self.message)


# ── Service functions ────────────────────────────────────


def create_booking(
    store: BookingStore,
    candidate: Booking,
    *,
    key_locks: bool = True,
) -> Booking:
    """Create a booking if the availability engine approves it.

    Args:
        store: Transaction-scoped booking store.
        candidate: Booking to create (id is ignored).
        key_locks: Serialize on unit and guest before evaluating.

    Returns:
        The stored booking, with its id.

    Raises:
        BookingRejectedError: A business rule refused the booking.
    """
    if key_locks:
        store.lock_keys(candidate.guest_name, candidate.unit_id)

    outcome = evaluate_create(store, candidate)
    if not outcome.approved:
        raise BookingRejectedError(outcome)

    try:
        created = store.create(candidate)
    except GuestUnitTakenError as exc:
        # Lost a race to a concurrent insert (only possible without key locks).
        raise BookingRejectedError(Outcome.reject(RejectionReason.SAME_UNIT_TWICE)) from exc

    logger.info(
        "booking created",
        extra={
            "extra_fields": booking_log_context(
                guest_name=created.guest_name,
                unit_id=created.unit_id,
                booking_id=created.id,
                check_in=created.check_in_date,
                nights=created.number_of_nights,
            ),
        },
    )
    return created


def update_booking(
    store: BookingStore,
    updated: Booking,
    *,
    key_locks: bool = True,
) -> Booking:
    """Move the guest's booking on a unit to new dates.

    The record is located by (guest_name, unit_id); only check-in date and
    number of nights change.

    Args:
        store: Transaction-scoped booking store.
        updated: New values; guest_name and unit_id select the record.
        key_locks: Serialize on unit and guest before evaluating.

    Returns:
        The stored booking after the update.

    Raises:
        BookingNotFoundError: No booking for this guest on this unit.
        DuplicateBookingError: More than one booking for this guest and unit.
        BookingRejectedError: The new dates overlap another booking.
    """
    if key_locks:
        store.lock_keys(updated.guest_name, updated.unit_id)

    existing = store.find_by_guest_and_unit(updated.guest_name, updated.unit_id)
    if not existing:
        raise BookingNotFoundError()
    if len(existing) > 1:
        logger.error(
            "multiple bookings for one guest and unit",
            extra={
                "extra_fields": booking_log_context(
                    guest_name=updated.guest_name,
                    unit_id=updated.unit_id,
                    booking_ids=[b.id for b in existing],
                ),
            },
        )
        raise DuplicateBookingError(len(existing))

    current = existing[0]
    outcome = evaluate_update(store, updated, current.id)
    if not outcome.approved:
        raise BookingRejectedError(outcome)

    stored = store.update(current.id, updated.check_in_date, updated.number_of_nights)

    logger.info(
        "booking updated",
        extra={
            "extra_fields": booking_log_context(
                guest_name=stored.guest_name,
                unit_id=stored.unit_id,
                booking_id=stored.id,
                previous_check_in=current.check_in_date,
                previous_nights=current.number_of_nights,
                check_in=stored.check_in_date,
                nights=stored.number_of_nights,
            ),
        },
    )
    return stored
