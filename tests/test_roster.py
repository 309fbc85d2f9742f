"""Tests for statusboard.core.roster — load, refresh and the reactive watch."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from conftest import FakeSession, FixedClock, WEDNESDAY
from statusboard.core.roster import RosterService, RosterUnavailableError
from statusboard.ports.store_port import StoreError


@pytest.fixture
def notifier():
    n = AsyncMock()
    n.notify = AsyncMock()
    return n


@pytest.fixture
def roster(store, clock, feed, notifier):
    return RosterService(store, clock, feed=feed, notifier=notifier)


# ---------------------------------------------------------------------------
# load_roster
# ---------------------------------------------------------------------------


class TestLoadRoster:
    @pytest.mark.asyncio
    async def test_resolves_then_returns_board(self, store, tenant_id, roster):
        e = await store.add_employee(tenant_id, "Dana")
        await store.add_override(tenant_id, e.id, "2026-10-14", "Vacation")
        await store.set_daily_message(tenant_id, "Pizza at noon")

        board = await roster.load_roster(tenant_id)

        assert board.tenant_id == tenant_id
        assert [x.status for x in board.employees] == ["Vacation"]
        assert board.banner == "Pizza at noon"
        assert roster.last_report.scheduled_applied == [e.id]

    @pytest.mark.asyncio
    async def test_reads_clock_once(self, store, tenant_id, roster, clock):
        e = await store.add_employee(tenant_id, "Dana")
        await store.set_recurring_enabled(tenant_id, e.id, True)
        await store.upsert_recurring_rule(tenant_id, e.id, 3, "WFH")

        await roster.load_roster(tenant_id)

        assert clock.reads == 1

    @pytest.mark.asyncio
    async def test_empty_tenant_returns_empty_board(self, tenant_id, roster):
        board = await roster.load_roster(tenant_id)
        assert board.employees == []
        assert board.banner == ""

    @pytest.mark.asyncio
    async def test_resolution_crash_still_returns_board(self, store, tenant_id, roster):
        await store.add_employee(tenant_id, "Dana")

        with patch(
            "statusboard.core.roster.resolve_statuses",
            AsyncMock(side_effect=RuntimeError("boom")),
        ):
            board = await roster.load_roster(tenant_id)

        assert [x.name for x in board.employees] == ["Dana"]
        assert board.employees[0].status == "Available"

    @pytest.mark.asyncio
    async def test_final_read_failure_notifies_signed_in_session(
        self, store, tenant_id, roster, notifier,
    ):
        store.list_employees = AsyncMock(side_effect=StoreError("no such table"))
        session = FakeSession(chat_id=777)

        with pytest.raises(RosterUnavailableError):
            await roster.load_roster(tenant_id, session=session)

        notifier.notify.assert_awaited_once_with(777, "Failed to load employees")

    @pytest.mark.asyncio
    async def test_final_read_failure_is_silent_after_sign_out(
        self, store, tenant_id, roster, notifier,
    ):
        store.list_employees = AsyncMock(side_effect=StoreError("no such table"))
        session = FakeSession(authenticated=False)

        with pytest.raises(RosterUnavailableError):
            await roster.load_roster(tenant_id, session=session)

        notifier.notify.assert_not_awaited()


# ---------------------------------------------------------------------------
# refresh_roster
# ---------------------------------------------------------------------------


class TestRefreshRoster:
    @pytest.mark.asyncio
    async def test_does_not_resolve(self, store, tenant_id, roster, clock):
        e = await store.add_employee(tenant_id, "Dana")
        await store.add_override(tenant_id, e.id, "2026-10-14", "Vacation")

        board = await roster.refresh_roster(tenant_id)

        assert board.employees[0].status == "Available"
        assert clock.reads == 0
        assert roster.last_report is None

    @pytest.mark.asyncio
    async def test_propagates_store_error(self, store, tenant_id, roster):
        store.list_employees = AsyncMock(side_effect=StoreError("locked"))
        with pytest.raises(StoreError):
            await roster.refresh_roster(tenant_id)


# ---------------------------------------------------------------------------
# watch
# ---------------------------------------------------------------------------


class TestWatch:
    @pytest.mark.asyncio
    async def test_change_pushes_refreshed_board(self, store, tenant_id, roster, feed, clock):
        received = []

        async def on_roster(board):
            received.append(board)

        roster.watch(tenant_id, on_roster)
        await store.add_employee(tenant_id, "Dana")
        await feed.drain()

        assert len(received) == 1
        assert [x.name for x in received[0].employees] == ["Dana"]
        assert clock.reads == 0

    @pytest.mark.asyncio
    async def test_resolver_writes_do_not_trigger_resolution(
        self, store, tenant_id, feed,
    ):
        clock = FixedClock(WEDNESDAY)
        service = RosterService(store, clock, feed=feed)
        e = await store.add_employee(tenant_id, "Dana")
        await store.add_override(tenant_id, e.id, "2026-10-14", "Vacation")
        received = []

        async def on_roster(board):
            received.append(board)

        service.watch(tenant_id, on_roster)
        await service.load_roster(tenant_id)
        await feed.drain()

        assert clock.reads == 1
        assert received
        assert received[-1].employees[0].status == "Vacation"

    @pytest.mark.asyncio
    async def test_burst_is_coalesced(self, store, tenant_id, roster, feed):
        gate = asyncio.Event()
        calls = []

        async def on_roster(board):
            calls.append(board)
            await gate.wait()

        roster.watch(tenant_id, on_roster)
        for i in range(5):
            await store.add_employee(tenant_id, f"E{i}")

        # Let the first refresh reach the callback, then release it.
        while not calls:
            await asyncio.sleep(0.01)
        gate.set()
        await feed.drain()

        assert len(calls) == 2
        assert len(calls[-1].employees) == 5

    @pytest.mark.asyncio
    async def test_other_tables_are_ignored(self, store, tenant_id, roster, feed):
        e = await store.add_employee(tenant_id, "Dana")
        await feed.drain()
        received = []

        async def on_roster(board):
            received.append(board)

        roster.watch(tenant_id, on_roster)
        await store.add_override(tenant_id, e.id, "2026-10-20", "Leave")
        await store.add_predefined_statuses(tenant_id, ["Lunch"])
        await feed.drain()

        assert received == []

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_pushes(self, store, tenant_id, roster, feed):
        received = []

        async def on_roster(board):
            received.append(board)

        unsubscribe = roster.watch(tenant_id, on_roster)
        unsubscribe()
        await store.add_employee(tenant_id, "Dana")
        await feed.drain()

        assert received == []
        assert feed.subscriber_count(tenant_id) == 0

    @pytest.mark.asyncio
    async def test_refresh_failure_is_logged_not_raised(self, store, tenant_id, roster, feed):
        received = []

        async def on_roster(board):
            received.append(board)

        roster.watch(tenant_id, on_roster)
        await store.add_employee(tenant_id, "Dana")
        store.list_employees = AsyncMock(side_effect=StoreError("locked"))
        await feed.drain()

        assert received == []

    @pytest.mark.asyncio
    async def test_failing_callback_still_gets_follow_up_refresh(
        self, store, tenant_id, roster, feed,
    ):
        gate = asyncio.Event()
        calls = []

        async def on_roster(board):
            calls.append(board)
            if len(calls) == 1:
                await gate.wait()
                raise RuntimeError("edit failed")

        roster.watch(tenant_id, on_roster)
        await store.add_employee(tenant_id, "A")
        while not calls:
            await asyncio.sleep(0.01)
        await store.add_employee(tenant_id, "B")
        await asyncio.sleep(0.01)
        gate.set()
        await feed.drain()

        assert len(calls) == 2
        assert [e.name for e in calls[-1].employees] == ["A", "B"]

    def test_watch_without_feed_raises(self, store, clock):
        service = RosterService(store, clock)
        with pytest.raises(RuntimeError):
            service.watch(1, AsyncMock())
