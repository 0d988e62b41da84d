from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from config import config
from models.base import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_db_session(db_url: str):
    """Create an engine for ``db_url`` and return ``(SessionLocal, engine)``.

    SQLite connections get foreign key enforcement switched on so that the
    schema behaves the same as on Postgres.
    """
    engine = create_engine(db_url)
    if engine.dialect.name == 'sqlite':
        event.listen(engine, 'connect', _enable_sqlite_foreign_keys)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return SessionLocal, engine


@contextmanager
def session_scope(db_url: str | None = None):
    """Yield a session on the configured database and dispose the engine afterwards.

    The caller decides when to commit. Uncommitted work is rolled back when
    the session closes.
    """
    SessionLocal, engine = get_db_session(db_url or config.postgres.db_url)
    try:
        with SessionLocal() as session:
            yield session
    finally:
        engine.dispose()


def create_tables(db_url: str | None = None):
    """Create every table known to the ORM. Used for SQLite databases and tests."""
    import models  # noqa: F401  registers every ORM class on Base.metadata

    _, engine = get_db_session(db_url or config.postgres.db_url)
    try:
        Base.metadata.create_all(engine)
        logger.info("Created tables: %s", ', '.join(sorted(Base.metadata.tables)))
    finally:
        engine.dispose()
