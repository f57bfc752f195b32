"""
Test fixtures for menu analytics tests.

Provides an in-memory database, an API client bound to it, and fakes for the
tracking client's clock and transport.
"""

from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from menu_analytics.db import get_session
from menu_analytics.main import app
from menu_analytics.models import Restaurant

# Use in-memory SQLite for unit tests (fast, isolated)
TEST_DATABASE_URL = "sqlite:///:memory:"

# Fixed starting point for fake clocks: 2024-01-01T00:00:00Z
START_TIME = 1_704_067_200.0


@pytest.fixture(autouse=True)
def clear_rate_limiter():
    """Clear the ingestion rate limiter before each test to prevent 429 errors."""
    from menu_analytics.core.rate_limit import rate_limiter

    rate_limiter.clear()
    yield
    rate_limiter.clear()


@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Generator[Session, None, None]:
    """Provide a test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def client(test_session: Session) -> Generator[TestClient, None, None]:
    """API client whose requests use the test database session."""
    app.dependency_overrides[get_session] = lambda: test_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def restaurant(test_session: Session) -> Restaurant:
    """An active restaurant whose public menu lives at /tonys-pizza."""
    record = Restaurant(id="rest-tonys", slug="tonys-pizza", name="Tony's Pizza")
    test_session.add(record)
    test_session.commit()
    return record


@pytest.fixture
def inactive_restaurant(test_session: Session) -> Restaurant:
    record = Restaurant(id="rest-closed", slug="closed-cafe", name="Closed Cafe", is_active=False)
    test_session.add(record)
    test_session.commit()
    return record


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport:
    """Transport double that records payloads instead of sending them."""

    def __init__(self, fail_for: Optional[str] = None):
        self.sent: List[Dict[str, Any]] = []
        self.closed = False
        self.fail_for = fail_for

    def send(self, payload: Dict[str, Any]) -> None:
        if self.fail_for is not None and payload.get("type") == self.fail_for:
            raise RuntimeError("network down")
        self.sent.append(payload)

    def close(self, timeout: Optional[float] = None) -> None:
        self.closed = True

    @property
    def types(self) -> List[str]:
        return [payload["type"] for payload in self.sent]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()
