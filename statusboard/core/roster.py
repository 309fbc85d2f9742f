"""
Status Board — Roster orchestration.

Two ways to get the board:

- `load_roster` is an initial or explicit load. It runs status resolution,
  then re-reads the board.
- `refresh_roster` is a reactive refresh. It only re-reads the board.

Change pushes always use the second. The resolver's own writes emit
change events, so resolving on every push would re-trigger itself.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable

from statusboard.core.notices import notify_if_authenticated
from statusboard.core.resolver import resolve_statuses
from statusboard.data.models import Roster
from statusboard.ports.store_port import StoreError

if TYPE_CHECKING:
    from statusboard.core.change_feed import ChangeEvent, ChangeFeed
    from statusboard.core.resolver import ResolutionReport
    from statusboard.ports.clock_port import ClockPort
    from statusboard.ports.notification_port import NotificationPort
    from statusboard.ports.session_port import SessionPort
    from statusboard.ports.store_port import StatusStorePort

logger = logging.getLogger(__name__)

RosterCallback = Callable[[Roster], Awaitable[None]]


class RosterUnavailableError(Exception):
    """The final roster read failed; there is nothing to display."""


class RosterService:
    """Resolve-and-return entry point consumed by the display layer."""

    def __init__(
        self,
        store: StatusStorePort,
        clock: ClockPort,
        feed: ChangeFeed | None = None,
        notifier: NotificationPort | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._feed = feed
        self._notifier = notifier
        self.last_report: ResolutionReport | None = None

    async def load_roster(
        self, tenant_id: int, session: SessionPort | None = None,
    ) -> Roster:
        """Resolve today's statuses, then return the full board."""
        now = self._clock.now()
        try:
            self.last_report = await resolve_statuses(self._store, tenant_id, now)
        except Exception as exc:
            # The final read below must still happen.
            logger.error("Status resolution crashed for tenant #%d: %s", tenant_id, exc)

        try:
            return await self._select(tenant_id)
        except StoreError as exc:
            logger.error("Failed to load roster for tenant #%d: %s", tenant_id, exc)
            await notify_if_authenticated(self._notifier, session, "Failed to load employees")
            raise RosterUnavailableError(str(exc)) from exc

    async def refresh_roster(self, tenant_id: int) -> Roster:
        """Re-read the board without resolving. Raises StoreError on failure."""
        return await self._select(tenant_id)

    def watch(self, tenant_id: int, callback: RosterCallback) -> Callable[[], None]:
        """Push a refreshed roster to `callback` on every employee change.

        Returns an unsubscribe function.
        """
        if self._feed is None:
            raise RuntimeError("RosterService was built without a change feed")
        watcher = _RosterWatcher(self, tenant_id, callback)
        return self._feed.subscribe(tenant_id, watcher.on_change)

    async def _select(self, tenant_id: int) -> Roster:
        employees = await self._store.list_employees(tenant_id)
        message = await self._store.get_daily_message(tenant_id)
        return Roster(
            tenant_id=tenant_id,
            employees=employees,
            banner=message.message_text if message else "",
        )


class _RosterWatcher:
    """Coalesces a burst of change events into as few refreshes as possible.

    While a refresh runs, further events only set a flag; one follow-up
    refresh picks all of them up.
    """

    _WATCHED_TABLES = frozenset({"employees", "daily_messages"})

    def __init__(self, service: RosterService, tenant_id: int, callback: RosterCallback) -> None:
        self._service = service
        self._tenant_id = tenant_id
        self._callback = callback
        self._running = False
        self._dirty = False

    async def on_change(self, event: ChangeEvent) -> None:
        if event.table not in self._WATCHED_TABLES:
            return
        if self._running:
            self._dirty = True
            return

        self._running = True
        try:
            while True:
                self._dirty = False
                try:
                    roster = await self._service.refresh_roster(self._tenant_id)
                except StoreError as exc:
                    logger.error("Reactive refresh failed for tenant #%d: %s", self._tenant_id, exc)
                else:
                    try:
                        await self._callback(roster)
                    except Exception as exc:
                        logger.error("Roster callback failed for tenant #%d: %s", self._tenant_id, exc)
                if not self._dirty:
                    break
        finally:
            self._running = False
