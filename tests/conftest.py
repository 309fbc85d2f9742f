"""Shared test fixtures and configuration.

Sets up fake environment variables so statusboard.config doesn't sys.exit(),
and provides common fixtures like a temp-file store and a fixed clock.
"""

import os

# Patch env vars BEFORE any statusboard imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "UTC")

from datetime import datetime

import pytest


class FixedClock:
    """ClockPort stub that counts how often it is read."""

    def __init__(self, now: datetime) -> None:
        self.current = now
        self.reads = 0

    def now(self) -> datetime:
        self.reads += 1
        return self.current


class FakeSession:
    """SessionPort stub."""

    def __init__(self, chat_id: int = 12345, authenticated: bool = True) -> None:
        self.chat_id = chat_id
        self.authenticated = authenticated

    async def is_authenticated(self) -> bool:
        return self.authenticated


# 2026-10-14 is a Wednesday (day_of_week 3)
WEDNESDAY = datetime(2026, 10, 14, 9, 0)


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_statusboard.db")


@pytest.fixture
def feed():
    from statusboard.core.change_feed import ChangeFeed
    return ChangeFeed()


@pytest.fixture
def store(tmp_db_path, feed):
    """Return a SQLiteStatusStore backed by a temp file and wired to `feed`."""
    from statusboard.adapters.sqlite_store import SQLiteStatusStore
    return SQLiteStatusStore(db_path=tmp_db_path, feed=feed, default_status="Available")


@pytest.fixture
def tenant_id(store):
    """A freshly created tenant."""
    return store.tenants.create_tenant("Acme").id


@pytest.fixture
def clock():
    return FixedClock(WEDNESDAY)
