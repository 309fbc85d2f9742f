"""
Status Board — Change Feed.

In-process publish/subscribe for row changes, scoped per tenant. The store
adapter publishes after every successful write (the resolver's included);
the roster layer subscribes to re-select the board.

Dispatch is fire-and-forget: publishing schedules each subscriber as a
task and returns immediately, so a write never waits on a display refresh.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

ChangeCallback = Callable[["ChangeEvent"], Awaitable[None]]


@dataclass(frozen=True)
class ChangeEvent:
    """A single row change."""

    tenant_id: int
    table: str                 # e.g. "employees", "scheduled_statuses"
    action: str                # "insert" | "update" | "delete"
    record_id: int | None = None


class ChangeFeed:
    """Per-tenant subscriber registry."""

    def __init__(self) -> None:
        self._subscribers: dict[int, list[ChangeCallback]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, tenant_id: int, callback: ChangeCallback) -> Callable[[], None]:
        """Register `callback` for the tenant. Returns an unsubscribe function."""
        self._subscribers[tenant_id].append(callback)
        logger.debug("Subscriber added for tenant #%d", tenant_id)

        def _unsubscribe() -> None:
            callbacks = self._subscribers.get(tenant_id)
            if not callbacks or callback not in callbacks:
                return
            callbacks.remove(callback)
            if not callbacks:
                del self._subscribers[tenant_id]
            logger.debug("Subscriber removed for tenant #%d", tenant_id)

        return _unsubscribe

    def subscriber_count(self, tenant_id: int) -> int:
        return len(self._subscribers.get(tenant_id, []))

    async def publish(self, event: ChangeEvent) -> None:
        """Schedule every subscriber of the event's tenant."""
        for callback in list(self._subscribers.get(event.tenant_id, [])):
            task = asyncio.create_task(self._dispatch(callback, event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every dispatched callback (and any it triggered) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @staticmethod
    async def _dispatch(callback: ChangeCallback, event: ChangeEvent) -> None:
        try:
            await callback(event)
        except Exception as exc:
            logger.error(
                "Change subscriber failed for %s/%s on tenant #%d: %s",
                event.table, event.action, event.tenant_id, exc,
            )
