"""Booking endpoints.

POST   /api/v1/booking/   → create a booking
PATCH  /api/v1/booking    → move an existing booking to new dates

Both accept {guestName, unitID, checkInDate, numberOfNights}. Failures are
HTTP 400 with the reason as a bare JSON string (see api.factory).
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from staybook.api.deps import get_settings, open_store
from staybook.domain.booking import Booking, check_out_for
from staybook.infra.config import Settings
from staybook.services.booking_service import create_booking, update_booking

router = APIRouter(prefix="/api/v1", tags=["bookings"])

# Keeps number_of_nights well inside both timedelta and the INTEGER column.
MAX_NIGHTS = 36_500


# ── Schemas ───────────────────────────────────────────────────────────────────


class BookingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    guest_name: str = Field(alias="guestName", min_length=1)
    unit_id: str = Field(alias="unitID", min_length=1)
    check_in_date: date = Field(alias="checkInDate")
    number_of_nights: int = Field(alias="numberOfNights", gt=0, le=MAX_NIGHTS)

    @field_validator("check_in_date", mode="before")
    @classmethod
    def _date_component(cls, value):
        # "2025-03-01T00:00:00.000Z" → "2025-03-01"; time of day is meaningless.
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value

    @model_validator(mode="after")
    def _check_out_in_range(self) -> BookingRequest:
        try:
            check_out_for(self.check_in_date, self.number_of_nights)
        except OverflowError:
            raise ValueError("check-out date is out of range") from None
        return self

    def to_booking(self) -> Booking:
        return Booking(
            guest_name=self.guest_name,
            unit_id=self.unit_id,
            check_in_date=self.check_in_date,
            number_of_nights=self.number_of_nights,
        )


# ── Helper ────────────────────────────────────────────────────────────────────


def _booking_to_dict(booking: Booking) -> dict:
    return {
        "id": booking.id,
        "guestName": booking.guest_name,
        "unitID": booking.unit_id,
        "checkInDate": booking.check_in_date.isoformat(),
        "checkOutDate": booking.check_out_date.isoformat(),
        "numberOfNights": booking.number_of_nights,
    }


# ── POST /api/v1/booking/ ─────────────────────────────────────────────────────


@router.post("/booking/")
@router.post("/booking", include_in_schema=False)
def create(
    body: BookingRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
) -> dict:
    """Create a booking.

    Rejected with 400 when the guest already booked this unit, already
    holds a booking elsewhere, or the unit is occupied on those dates.
    """
    with open_store(request.app) as store:
        created = create_booking(store, body.to_booking(), key_locks=settings.key_locks)
    return _booking_to_dict(created)


# ── PATCH /api/v1/booking ─────────────────────────────────────────────────────


@router.patch("/booking")
@router.patch("/booking/", include_in_schema=False)
def update(
    body: BookingRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
) -> dict:
    """Change check-in date and/or nights of the guest's booking on the unit."""
    with open_store(request.app) as store:
        stored = update_booking(store, body.to_booking(), key_locks=settings.key_locks)
    return _booking_to_dict(stored)
