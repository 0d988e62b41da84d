"""Fixtures for the end-to-end tests.

Every test gets its own SQLite database. Requests go through the lambda
handler with real tokens for an admin and a regular annotator.
"""

import pytest

from config import config
from db.database import create_tables, session_scope
from models.event import EventChannelORM, EventORM
from models.user import UserORM
from utils.jwt import create_token

from base import ADMIN_EMAIL, ANNOTATOR_EMAIL, FIRST_EVENT_ID, T0


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    monkeypatch.setattr(config.postgres, 'url', f"sqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setattr(config.app, 'presign_images', False)
    monkeypatch.setattr(config.app, 'timezone', 'UTC')
    create_tables()


def _create_user(email: str, role: str, enabled: bool = True) -> str:
    with session_scope() as session:
        user = UserORM(email=email, full_name=email.split('@')[0], role=role, enabled=enabled)
        session.add(user)
        session.commit()
        token, _ = create_token(user)
        return token


@pytest.fixture
def admin_token():
    return _create_user(ADMIN_EMAIL, 'admin')


@pytest.fixture
def user_token():
    return _create_user(ANNOTATOR_EMAIL, 'user')


@pytest.fixture
def disabled_token():
    return _create_user('former@example.com', 'user', enabled=False)


@pytest.fixture
def event_ids():
    """Six events: three on R-1001 and three on R-2002, one second apart."""
    ids = []
    with session_scope() as session:
        for i, device_id in enumerate(['R-1001'] * 3 + ['R-2002'] * 3):
            event_id = FIRST_EVENT_ID + i
            session.add(EventORM(
                id=event_id,
                device_id=device_id,
                timestamp=T0 + i,
                type=29,
                image_path=f"s3://apm-captured-images/frames/{device_id}/{T0 + i}.jpg",
                channels=[EventChannelORM(name='Nepal TV', score=0.85)],
            ))
            ids.append(event_id)
        session.commit()
    return ids
