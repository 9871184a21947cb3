"""Shared pytest fixtures for Staybook tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from staybook.api.factory import create_app  # noqa: E402
from staybook.infra.config import Settings  # noqa: E402
from staybook.infra.repositories.memory_store import InMemoryBookingStore  # noqa: E402


@pytest.fixture
def store():
    """Empty in-memory booking store."""
    return InMemoryBookingStore()


@pytest.fixture
def app():
    """App wired to a fresh in-memory store (no Postgres needed)."""
    return create_app(Settings(store="memory"))


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def app_store(app) -> InMemoryBookingStore:
    """The in-memory store behind the `app` fixture, for seeding."""
    return app.state.memory_store
