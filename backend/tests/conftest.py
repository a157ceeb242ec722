"""Pytest fixtures — SQLite database for fast, isolated tests."""
import os
from datetime import datetime, timezone, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from schedula.database import Base, get_db
from schedula.main import app

# Import all models so they register with Base.metadata
from schedula.models.profile import Profile                # noqa: F401
from schedula.models.event import Event                    # noqa: F401
from schedula.models.rsvp import RSVP                      # noqa: F401
from schedula.models.attendance import Attendance          # noqa: F401
from schedula.models.notification import Notification      # noqa: F401
from schedula.models.event_mutation import EventMutation   # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=10000")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: create profiles and events via the API, return the JSON response dict
# ---------------------------------------------------------------------------
def create_test_profile(client: TestClient, name: str = "Test User", role: str = "attendee",
                        tz: str = "UTC") -> dict:
    """Helper — POST /api/profiles and return response JSON."""
    email = f"{name.lower().replace(' ', '.')}@example.com"
    resp = client.post("/api/profiles/", json={
        "email": email,
        "display_name": name,
        "role": role,
        "timezone": tz,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_event(client: TestClient, organizer_id: str, capacity: int = 2,
                      title: str = "Test Event", publish: bool = True,
                      start_offset_hours: int = 24, duration_hours: int = 2, **extra) -> dict:
    """Helper — POST /api/events (and publish it by default), return response JSON."""
    start = datetime.now(timezone.utc) + timedelta(hours=start_offset_hours)
    end = start + timedelta(hours=duration_hours)
    payload = {
        "organizer_id": organizer_id,
        "title": title,
        "start_time_utc": start.isoformat(),
        "end_time_utc": end.isoformat(),
        "capacity": capacity,
        **extra,
    }
    resp = client.post("/api/events/", json=payload)
    assert resp.status_code == 201, resp.text
    event = resp.json()
    if publish:
        resp = client.post(f"/api/events/{event['event_id']}/publish", json={"actor_user_id": organizer_id})
        assert resp.status_code == 200, resp.text
        event = resp.json()
    return event


def register(client: TestClient, event_id: str, user_id: str):
    """Helper — POST /api/events/{id}/rsvps, return the raw response."""
    return client.post(f"/api/events/{event_id}/rsvps", json={"user_id": user_id})
