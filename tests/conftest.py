"""
Shared pytest fixtures for route score tests

Provides fixtures for:
- Database setup/teardown with in-memory SQLite
- FastAPI test client
- Route and report factories
- A pinned clock for analytics windows and the scheduler
- Environment variable mocking
"""

from datetime import datetime, timedelta
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from api.main import app
from routescore.database import get_db
from routescore.models import Base, Report, Route, RouteStop

# Wednesday in June: weekday multipliers are 1.0 and seasonality is neutral
NOW = datetime(2025, 6, 11, 12, 0, 0)


class FixedClock:
    """Clock pinned to a given time; wait() advances it instead of sleeping"""

    def __init__(self, now: datetime = NOW, stop_after: int = None):
        self.current = now
        self.stop_after = stop_after
        self.waits = []

    def now(self) -> datetime:
        return self.current

    def wait(self, stop_event, seconds: float) -> bool:
        self.waits.append(seconds)
        self.current += timedelta(seconds=seconds)
        if self.stop_after is not None and len(self.waits) >= self.stop_after:
            return True
        return stop_event.is_set()


@pytest.fixture(scope="function")
def test_engine():
    """
    Create an in-memory SQLite engine for testing

    Function-scoped so each test gets an empty database. StaticPool keeps the
    single in-memory connection alive across sessions and threads.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    """sessionmaker bound to the test engine (for code that opens its own sessions)"""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Database session for a test"""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """
    FastAPI TestClient with database dependency override

    All API requests will use the test database session
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def now() -> datetime:
    """The pinned "current" time used by analytics tests"""
    return NOW


@pytest.fixture
def fixed_clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def make_route(db_session):
    """Factory creating a Route with ordered stops"""

    def _make_route(
        route_id: str = "R1",
        name: str = None,
        stops=("A", "B", "C", "D", "E"),
        fare: float = 40.0,
        operating_start: str = "06:00",
        operating_end: str = "22:00",
        is_active: bool = True,
        operator: str = "Test Operator",
    ) -> Route:
        route = Route(
            route_id=route_id,
            name=name or f"Route {route_id}",
            operator=operator,
            fare=fare,
            operating_start=operating_start,
            operating_end=operating_end,
            is_active=is_active,
        )
        route.stops = [
            RouteStop(stop_sequence=i, stop_name=stop_name, stop_lat=-1.28 + i * 0.01, stop_lon=36.82)
            for i, stop_name in enumerate(stops, start=1)
        ]
        db_session.add(route)
        db_session.commit()
        db_session.refresh(route)
        return route

    return _make_route


@pytest.fixture
def make_report(db_session):
    """Factory creating a Report (defaults: verified, medium, one day before NOW)"""

    def _make_report(
        route_id: str = "R1",
        report_type: str = "delay",
        severity: str = "medium",
        status: str = "verified",
        created_at: datetime = None,
        user_id: str = None,
    ) -> Report:
        report = Report(
            route_id=route_id,
            report_type=report_type,
            severity=severity,
            status=status,
            created_at=created_at or NOW - timedelta(days=1),
            user_id=user_id,
            is_anonymous=user_id is None,
        )
        db_session.add(report)
        db_session.commit()
        db_session.refresh(report)
        return report

    return _make_report


@pytest.fixture
def sample_route(make_route) -> Route:
    """Create and return a sample Route with five stops"""
    return make_route("R1", name="CBD - Westlands")


@pytest.fixture
def sample_routes(make_route) -> list[Route]:
    """Create and return multiple sample Routes"""
    return [make_route(f"R{i}") for i in range(1, 4)]


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """
    Mock environment variables for tests

    autouse=True means this runs for every test automatically
    """
    # Use in-memory SQLite for tests (overridden by db_session fixture)
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    # Never start the background scheduler from the API lifespan in tests
    monkeypatch.setenv("SCORE_SCHEDULER_ENABLED", "false")
    monkeypatch.setenv("ANALYTICS_MAX_WORKERS", "2")
