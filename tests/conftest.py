"""
Shared fixtures for the share service test suite.

Provides environment defaults (in-memory SQLite, throwaway keys), a
controllable clock, lifecycle engines over both store implementations, and
an authenticated TestClient for the HTTP layer.
"""

import base64
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Settings are read at import time – set them before any backend import.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("MASTER_ENCRYPTION_KEY", base64.b64encode(b"k" * 32).decode("ascii"))

BACKEND_DIR = Path(__file__).resolve().parent.parent / "backend"
sys.path.insert(0, str(BACKEND_DIR))

import database  # noqa: E402
import models.activity_log  # noqa: F401, E402
import models.password_entry  # noqa: F401, E402
import models.share  # noqa: F401, E402
from models.user import User  # noqa: E402
from sharing.domain import NewEntry  # noqa: E402
from sharing.engine import ExpiryPolicy, ShareEngine  # noqa: E402
from sharing.memory_store import MemoryShareStore  # noqa: E402
from sharing.sql_store import SqlShareStore  # noqa: E402

OWNER_ID = 1
OTHER_OWNER_ID = 2


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def policy():
    return ExpiryPolicy(
        pre_view_window=timedelta(days=14),
        post_view_window=timedelta(hours=1),
        expiring_soon_window=timedelta(minutes=30),
    )


@pytest.fixture
def db_session():
    """Fresh schema per test on the in-memory SQLite engine, with two admins."""
    database.Base.metadata.create_all(bind=database.engine)
    session = database.SessionLocal()
    session.add_all([
        User(id=OWNER_ID, username="alice", password_hash="x", role="admin", is_active=True),
        User(id=OTHER_OWNER_ID, username="bob", password_hash="x", role="admin", is_active=True),
    ])
    session.commit()
    try:
        yield session
    finally:
        session.close()
        database.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return MemoryShareStore()
    return SqlShareStore(request.getfixturevalue("db_session"))


@pytest.fixture
def engine(store, policy, clock):
    return ShareEngine(store, policy=policy, clock=clock)


def make_entries(engine, owner_id=OWNER_ID, names=("GitLab", "Grafana", "Vault")):
    """Create one entry per service name and return their records."""
    return engine.create_entries(
        owner_id,
        [
            NewEntry(
                service_name=name,
                service_url=f"https://{name.lower()}.internal",
                username=f"svc-{name.lower()}",
                secret=f"{name}-s3cret!",
            )
            for name in names
        ],
    )


@pytest.fixture
def entries(engine):
    return make_entries(engine)
