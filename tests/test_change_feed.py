"""Tests for statusboard.core.change_feed — per-tenant publish/subscribe."""

import pytest

from statusboard.core.change_feed import ChangeEvent, ChangeFeed


class TestChangeFeed:
    @pytest.mark.asyncio
    async def test_subscriber_receives_event(self):
        feed = ChangeFeed()
        seen = []

        async def cb(event):
            seen.append(event)

        feed.subscribe(1, cb)
        event = ChangeEvent(1, "employees", "insert", 7)
        await feed.publish(event)
        await feed.drain()

        assert seen == [event]

    @pytest.mark.asyncio
    async def test_events_are_scoped_to_tenant(self):
        feed = ChangeFeed()
        seen = []

        async def cb(event):
            seen.append(event)

        feed.subscribe(1, cb)
        await feed.publish(ChangeEvent(2, "employees", "update", 3))
        await feed.drain()

        assert seen == []

    @pytest.mark.asyncio
    async def test_publish_does_not_wait_for_subscribers(self):
        feed = ChangeFeed()
        seen = []

        async def cb(event):
            seen.append(event)

        feed.subscribe(1, cb)
        await feed.publish(ChangeEvent(1, "employees", "update"))

        assert seen == []
        await feed.drain()
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_affect_others(self):
        feed = ChangeFeed()
        seen = []

        async def bad(event):
            raise RuntimeError("subscriber bug")

        async def good(event):
            seen.append(event)

        feed.subscribe(1, bad)
        feed.subscribe(1, good)
        await feed.publish(ChangeEvent(1, "employees", "delete", 4))
        await feed.drain()

        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_drain_waits_for_cascading_events(self):
        feed = ChangeFeed()
        seen = []

        async def first(event):
            if event.table == "employees":
                await feed.publish(ChangeEvent(1, "daily_messages", "update"))

        async def second(event):
            seen.append(event.table)

        feed.subscribe(1, first)
        feed.subscribe(1, second)
        await feed.publish(ChangeEvent(1, "employees", "update"))
        await feed.drain()

        assert sorted(seen) == ["daily_messages", "employees"]

    def test_last_unsubscribe_drops_tenant_entry(self):
        feed = ChangeFeed()

        async def cb(event):
            pass

        first = feed.subscribe(5, cb)
        second = feed.subscribe(5, cb)
        first()
        assert 5 in feed._subscribers
        second()
        assert 5 not in feed._subscribers

    def test_unsubscribe(self):
        feed = ChangeFeed()

        async def cb(event):
            pass

        unsubscribe = feed.subscribe(5, cb)
        assert feed.subscriber_count(5) == 1
        unsubscribe()
        assert feed.subscriber_count(5) == 0
        # Second call is a no-op
        unsubscribe()
        assert feed.subscriber_count(5) == 0

    def test_subscriber_count_unknown_tenant(self):
        assert ChangeFeed().subscriber_count(99) == 0
