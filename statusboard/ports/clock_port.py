"""Clock port — the single source of "now" for a resolution run."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class ClockPort(Protocol):
    """Read once per roster load; every pass shares the reading."""

    def now(self) -> datetime: ...
