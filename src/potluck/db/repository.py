"""SQLite engine and session lifecycle shared by the cache and pantry stores."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from potluck.config import get_settings
from potluck.db.models import Base

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 5000

_engine: Optional[Engine] = None
_sessions: Optional[sessionmaker[Session]] = None


def _on_connect(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    # Two requests upserting the same event's cache row wait on the write lock; the later
    # commit wins.
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
        cursor.execute("PRAGMA foreign_keys = ON")
    finally:
        cursor.close()


def build_engine(database_path: Path) -> Engine:
    """Create a SQLite engine for ``database_path`` and make sure the tables exist."""

    database_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        f"sqlite:///{database_path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _on_connect)
    try:
        Base.metadata.create_all(engine)
    except OperationalError as exc:
        # Another process created the tables between the existence check and CREATE.
        if "already exists" not in str(exc).lower():
            raise
        logger.debug("Tables already present at %s", database_path)
    return engine


def get_engine() -> Engine:
    """Return the process-wide engine for the configured database path."""

    global _engine, _sessions
    if _engine is None:
        path = get_settings().database_path
        _engine = build_engine(path)
        _sessions = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)
        logger.debug("Opened grocery database at %s", path)
    return _engine


def get_session() -> Session:
    get_engine()
    assert _sessions is not None
    return _sessions()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Run a unit of work: commit when the block exits cleanly, roll back otherwise."""

    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def reset_repository_state() -> None:
    """Dispose the shared engine so the next call re-reads settings."""

    global _engine, _sessions
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None


__all__ = [
    "SQLITE_BUSY_TIMEOUT_MS",
    "build_engine",
    "get_engine",
    "get_session",
    "session_scope",
    "reset_repository_state",
]
