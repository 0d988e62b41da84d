"""Shared fixtures: a throwaway SQLite database and an event factory.

Events are read-only for the API, so tests insert them directly through the
ORM the way the ingestion path would.
"""

import pytest

import models  # noqa: F401  registers every ORM class on Base.metadata
from db.database import get_db_session
from models.base import Base
from models.event import EventAdORM, EventORM


@pytest.fixture
def session(tmp_path):
    SessionLocal, engine = get_db_session(f"sqlite:///{tmp_path / 'labels.db'}")
    Base.metadata.create_all(engine)
    with SessionLocal() as session:
        yield session
    engine.dispose()


@pytest.fixture
def make_event(session):
    """Insert an event and return its id."""
    def _make_event(event_id: int, timestamp: int, device_id: str = 'R-1001', type: int = 29,
                    image_path: str | None = None, ads=()):
        event = EventORM(
            id=event_id,
            device_id=device_id,
            timestamp=timestamp,
            type=type,
            image_path=image_path,
            ads=[EventAdORM(name=name, score=score) for name, score in ads],
        )
        session.add(event)
        session.commit()
        return event_id
    return _make_event
