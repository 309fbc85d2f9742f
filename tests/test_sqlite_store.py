"""Tests for statusboard.adapters.sqlite_store — async adapter over SQLite."""

import sqlite3

import pytest

from statusboard.ports.store_port import StoreError


@pytest.fixture
def events(feed, tenant_id):
    seen = []

    async def record(event):
        seen.append((event.table, event.action))

    feed.subscribe(tenant_id, record)
    return seen


class TestChangeEvents:
    @pytest.mark.asyncio
    async def test_writes_publish_events(self, store, feed, tenant_id, events):
        e = await store.add_employee(tenant_id, "Dana")
        await store.set_manual_status(tenant_id, e.id, "Out")
        await store.add_override(tenant_id, e.id, "2026-10-20", "Leave")
        await store.set_daily_message(tenant_id, "hi")
        await feed.drain()

        assert events == [
            ("employees", "insert"),
            ("employees", "update"),
            ("scheduled_statuses", "insert"),
            ("daily_messages", "update"),
        ]

    @pytest.mark.asyncio
    async def test_reads_publish_nothing(self, store, feed, tenant_id, events):
        await store.list_employees(tenant_id)
        await store.list_overrides(tenant_id)
        await feed.drain()
        assert events == []

    @pytest.mark.asyncio
    async def test_failed_cas_publishes_nothing(self, store, feed, tenant_id, events):
        e = await store.add_employee(tenant_id, "Dana")
        await feed.drain()
        events.clear()

        assert await store.apply_status(tenant_id, e.id, "WFH", "2026-10-14", 99) is None
        await feed.drain()
        assert events == []

    @pytest.mark.asyncio
    async def test_empty_purge_publishes_nothing(self, store, feed, tenant_id, events):
        assert await store.delete_overrides_before(tenant_id, "2026-10-14") == 0
        await feed.drain()
        assert events == []


class TestEmployeeHelpers:
    @pytest.mark.asyncio
    async def test_new_employee_gets_configured_default(self, tmp_db_path, tenant_id):
        from statusboard.adapters.sqlite_store import SQLiteStatusStore

        store = SQLiteStatusStore(db_path=tmp_db_path, default_status="In")
        e = await store.add_employee(tenant_id, "Dana")
        assert e.status == "In"

    @pytest.mark.asyncio
    async def test_set_helpers(self, store, tenant_id):
        e = await store.add_employee(tenant_id, "Dana")
        await store.set_recurring_enabled(tenant_id, e.id, True)
        await store.set_avatar(tenant_id, e.id, "file-1")
        updated = await store.set_manual_status(tenant_id, e.id, "Lunch")

        assert updated.recurring_enabled is True
        assert updated.image_url == "file-1"
        assert updated.status == "Lunch"
        assert updated.version == 3

    @pytest.mark.asyncio
    async def test_pending_employees(self, store, tenant_id):
        a = await store.add_employee(tenant_id, "A")
        b = await store.add_employee(tenant_id, "B")
        await store.apply_status(tenant_id, a.id, "In", "2026-10-14", a.version)

        pending = await store.list_pending_employees(tenant_id, "2026-10-14")
        assert [e.id for e in pending] == [b.id]


class TestErrors:
    @pytest.mark.asyncio
    async def test_sqlite_errors_become_store_errors(self, store, tmp_db_path, tenant_id):
        conn = sqlite3.connect(tmp_db_path)
        conn.execute("DROP TABLE employees")
        conn.commit()
        conn.close()

        with pytest.raises(StoreError, match="no such table"):
            await store.list_employees(tenant_id)
