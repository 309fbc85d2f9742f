"""System clock adapter — implements ClockPort in the configured timezone."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo


class SystemClock:
    """Wall-clock time in a fixed zone, so "today" matches the team's day."""

    def __init__(self, timezone: str | None = None) -> None:
        if timezone is None:
            from statusboard.config import settings
            timezone = settings.TIMEZONE
        self._tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self._tz)
