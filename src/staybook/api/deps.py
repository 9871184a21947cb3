"""Per-request helpers for the booking routes."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, Request

from staybook.domain.availability import BookingStore
from staybook.infra.config import Settings
from staybook.infra.db import txn
from staybook.infra.repositories.bookings_repository import PgBookingStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


@contextmanager
def open_store(app: FastAPI) -> Iterator[BookingStore]:
    """Booking store scoped to one transaction.

    Used inside the route body so the commit (and any commit failure)
    happens before the response is built.

    Postgres: one txn(), committed on exit and rolled back if the block
    raises. Memory: one session.
    """
    settings: Settings = app.state.settings
    if settings.store == "memory":
        with app.state.memory_store.session() as session:
            yield session
        return

    with txn() as cur:
        yield PgBookingStore(cur)
