"""Shared fixtures for the test-suite."""

from __future__ import annotations

import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Settings are read when ``apinotice.infrastructure.database`` is imported,
# so the environment has to be prepared before any project import.
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="apinotice-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR / 'apinotice.db'}"
os.environ["NOTIFY_DISPATCHER_ENABLED"] = "false"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
for _name in ("SENDGRID_API_KEY", "SENDGRID_SENDER", "NOTIFY_FALLBACK_RECIPIENT"):
    os.environ.pop(_name, None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from apinotice.application.use_cases.apis import create_api, create_version
from apinotice.domain.entities import NotificationKind
from apinotice.infrastructure.database import initialize_database
from apinotice.infrastructure.repositories import NotificationRepository

from support import FakeClock


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    initialize_database(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_api(session):
    def _make_api(name: str = "Payments", contact_email: str | None = "owner@example.com", **extra):
        return create_api(
            session,
            org_id=extra.pop("org_id", "org-1"),
            name=name,
            contact_email=contact_email,
            **extra,
        )

    return _make_api


@pytest.fixture
def make_version(session):
    def _make_version(api, version: str = "v1"):
        return create_version(session, api_id=api.id, version=version)

    return _make_version


@pytest.fixture
def make_notification(session):
    def _make_notification(api, version, scheduled_at: datetime, kind=NotificationKind.DEPRECATE):
        return NotificationRepository(session).create(api.id, version.id, kind, scheduled_at)

    return _make_notification
