"""
Notes API — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the entire test suite.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock AsyncSession (service unit tests, no DB)
    ├── fake_clock:      Manually advanced time source for the admission gate
    ├── admission_gate:  AdmissionGate driven by fake_clock
    ├── database:        Empty notes table in a temporary SQLite file
    └── test_client:     HTTPX AsyncClient bound to a fresh app
"""

import os
import tempfile

# Settings are read at import time: point them at a throwaway SQLite file
# BEFORE anything from notes_api is imported.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="notes_api_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_INTERVAL"] = "1"

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402

from notes_api.rate_limit import AdmissionGate  # noqa: E402


class FakeClock:
    """Monotonic clock stand-in; time only moves when advance() is called."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_note(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
            result = await note_service.get_note(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def admission_gate(fake_clock):
    return AdmissionGate(interval_seconds=1, clock=fake_clock)


@pytest_asyncio.fixture
async def database():
    """Creates the notes table before the test and drops it afterwards."""
    from notes_api.database import create_tables, dispose_engine, drop_tables

    await create_tables()
    yield
    await drop_tables()
    await dispose_engine()


@pytest_asyncio.fixture
async def test_client(database, admission_gate):
    """
    HTTPX AsyncClient routed straight into a fresh app (no server, no lifespan).

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from notes_api.main import create_app

    app = create_app(admission_gate=admission_gate)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
