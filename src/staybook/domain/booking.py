"""Booking value type and date-range helpers.

A booking occupies its unit on the half-open range [check_in, check_out).
check_out is derived by calendar-day addition, so month and year
boundaries behave like a wall calendar.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta


def check_out_for(check_in: date, number_of_nights: int) -> date:
    """Departure day for a stay of number_of_nights starting on check_in."""
    return check_in + timedelta(days=number_of_nights)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """True when [a_start, a_end) and [b_start, b_end) intersect.

    Strict on both bounds: a stay ending on the day another begins does
    not overlap it.
    """
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class Booking:
    guest_name: str
    unit_id: str
    check_in_date: date
    number_of_nights: int
    id: int | None = None

    @property
    def check_out_date(self) -> date:
        return check_out_for(self.check_in_date, self.number_of_nights)

    def overlaps(self, other: Booking) -> bool:
        return ranges_overlap(
            self.check_in_date,
            self.check_out_date,
            other.check_in_date,
            other.check_out_date,
        )

    def with_id(self, booking_id: int) -> Booking:
        return replace(self, id=booking_id)

    def rescheduled(self, check_in_date: date, number_of_nights: int) -> Booking:
        """Copy with new dates; identity (guest, unit, id) is kept."""
        return replace(self, check_in_date=check_in_date, number_of_nights=number_of_nights)
