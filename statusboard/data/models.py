"""
Status Board — Data Models.

Every record belongs to exactly one tenant. Dates are stored as ISO
strings (YYYY-MM-DD), the same way SQLite stores them, so they compare
correctly as plain strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Tenant:
    """A company account. Owns every other record through `tenant_id`."""

    id: int
    company_name: str = "My Company"
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Member:
    """A Telegram user signed in to one tenant."""

    telegram_user_id: int
    tenant_id: int
    display_name: str
    is_admin: bool = False
    created_at: str = ""


@dataclass
class Employee:
    """A team member shown on the status board.

    `already_applied` / `applied_date` record that today's recurring or
    scheduled status has been applied, so resolution runs at most once per
    employee per day. `version` is bumped by every write and guards the
    resolver's compare-and-swap update.
    """

    id: int
    tenant_id: int
    name: str
    status: str = "Available"
    phone: str | None = None
    email: str | None = None
    image_url: str | None = None
    recurring_enabled: bool = False
    already_applied: bool = False
    applied_date: str | None = None   # ISO date YYYY-MM-DD
    version: int = 0
    created_at: str = ""
    updated_at: str = ""


@dataclass
class RecurringStatusRule:
    """Standing status for one weekday. Unique per (employee, day_of_week)."""

    id: int
    employee_id: int
    tenant_id: int
    day_of_week: int                  # 0 = Sunday .. 6 = Saturday
    status_text: str


@dataclass
class ScheduledStatusOverride:
    """One-off status for an exact date; purged once the date has passed."""

    id: int
    employee_id: int
    tenant_id: int
    scheduled_date: str               # ISO date YYYY-MM-DD
    status_text: str
    last_applied_date: str | None = None
    created_at: str = ""


@dataclass
class PredefinedStatus:
    """Quick-select status choice. Advisory only: free text is always allowed."""

    id: int
    tenant_id: int
    status_text: str


@dataclass
class DailyMessage:
    """The announcement banner shown above the roster."""

    tenant_id: int
    message_text: str = ""
    updated_at: str = ""


@dataclass
class Roster:
    """What the display layer renders: banner plus every employee."""

    tenant_id: int
    employees: list[Employee] = field(default_factory=list)
    banner: str = ""
