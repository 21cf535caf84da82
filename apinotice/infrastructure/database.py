"""Database configuration and session management."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from apinotice.config import Settings, get_settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


logger = logging.getLogger(__name__)


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-based SQLite database."""

    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return
    database = url.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    directory = Path(database).expanduser().parent
    if not directory.exists():
        logger.info("Creating directory '%s' for the SQLite database", directory)
        directory.mkdir(parents=True, exist_ok=True)


def connect_args_for(settings: Settings) -> dict[str, object]:
    """Driver arguments bounding how long one statement may block."""

    backend = make_url(settings.database_url).get_backend_name()
    timeout = settings.database_timeout_seconds
    if backend == "sqlite":
        # Sessions are handed to worker threads by the dispatcher.
        return {"check_same_thread": False, "timeout": timeout}
    if backend == "postgresql":
        milliseconds = max(1, int(timeout * 1000))
        return {"options": f"-c statement_timeout={milliseconds}"}
    return {}


def build_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine for the configured database."""

    database_url = settings.database_url
    if make_url(database_url).get_backend_name() == "sqlite":
        _ensure_sqlite_directory(database_url)
    return create_engine(
        database_url, pool_pre_ping=True, connect_args=connect_args_for(settings)
    )


settings = get_settings()
engine = build_engine(settings)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def initialize_database(bind: Engine | None = None) -> None:
    """Ensure all ORM models have corresponding database tables."""

    from apinotice.infrastructure import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=bind or engine, checkfirst=True)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session and close it afterwards."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
