"""
Status Board — Employee profile operations.

Manual edits, avatars, scheduled overrides and recurring weekday rules.
These are independent of resolution: each validates its own input and
raises ValidationError before touching the store.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from statusboard.core.validation import (
    NotFoundError,
    ValidationError,
    clean_email,
    clean_name,
    clean_phone,
    clean_status,
    parse_day_of_week,
    parse_schedule_date,
)

if TYPE_CHECKING:
    from datetime import date

    from statusboard.data.models import (
        Employee,
        RecurringStatusRule,
        ScheduledStatusOverride,
    )
    from statusboard.ports.clock_port import ClockPort
    from statusboard.ports.store_port import StatusStorePort

logger = logging.getLogger(__name__)

_FIELD_CLEANERS = {
    "name": clean_name,
    "phone": clean_phone,
    "email": clean_email,
}


class EmployeeService:
    """CRUD entry points behind the employee profile view."""

    def __init__(self, store: StatusStorePort, clock: ClockPort) -> None:
        self._store = store
        self._clock = clock

    # -- employees ---------------------------------------------------------

    async def add_employee(self, tenant_id: int, name: str) -> Employee:
        return await self._store.add_employee(tenant_id, clean_name(name))

    async def find_employee(self, tenant_id: int, ref: str | int) -> Employee:
        """Look up by numeric id, then by case-insensitive name."""
        text = str(ref).strip()
        if not text:
            raise ValidationError("Please name an employee")
        if text.isdigit():
            employee = await self._store.get_employee(tenant_id, int(text))
            if employee is not None:
                return employee

        wanted = text.lower()
        for employee in await self._store.list_employees(tenant_id):
            if employee.name.lower() == wanted:
                return employee
        raise NotFoundError(f"No employee named '{text}'")

    async def update_field(
        self, tenant_id: int, employee_id: int, field: str, value: str,
    ) -> Employee:
        cleaner = _FIELD_CLEANERS.get(field)
        if cleaner is None:
            raise ValidationError(f"Unknown field '{field}' (use name, phone or email)")
        cleaned = cleaner(value)
        updated = await self._store.update_employee_fields(
            tenant_id, employee_id, **{field: cleaned},
        )
        return self._require(updated, employee_id)

    async def set_status(self, tenant_id: int, employee_id: int, text: str) -> Employee:
        """Manual status change; leaves today's resolution markers alone."""
        updated = await self._store.set_manual_status(tenant_id, employee_id, clean_status(text))
        return self._require(updated, employee_id)

    async def set_avatar(self, tenant_id: int, employee_id: int, image_ref: str | None) -> Employee:
        ref = (image_ref or "").strip() or None
        updated = await self._store.set_avatar(tenant_id, employee_id, ref)
        return self._require(updated, employee_id)

    async def remove_employee(self, tenant_id: int, employee_id: int) -> None:
        if not await self._store.delete_employee(tenant_id, employee_id):
            raise NotFoundError(f"Employee #{employee_id} not found")

    # -- scheduled overrides -----------------------------------------------

    async def add_scheduled_status(
        self,
        tenant_id: int,
        employee_id: int,
        scheduled_date: str | date,
        text: str,
    ) -> ScheduledStatusOverride:
        """Schedule a one-off status. The date may be today but not earlier.

        An override for today re-opens the employee for resolution, so the
        next roster load applies it even if today's recurring status is
        already in place.
        """
        status = (text or "").strip()
        if not scheduled_date or not status:
            raise ValidationError("Please select a date and enter a status")
        status = clean_status(status)
        today = self._clock.now().date()
        iso_date = parse_schedule_date(scheduled_date, today)

        await self._require_employee(tenant_id, employee_id)
        override = await self._store.add_override(tenant_id, employee_id, iso_date, status)
        if iso_date == today.isoformat():
            await self._store.clear_applied(tenant_id, employee_id)
        return override

    async def remove_scheduled_status(self, tenant_id: int, override_id: int) -> None:
        if not await self._store.delete_override(tenant_id, override_id):
            raise NotFoundError(f"Scheduled status #{override_id} not found")

    async def list_scheduled_statuses(
        self, tenant_id: int, employee_id: int,
    ) -> list[ScheduledStatusOverride]:
        return await self._store.list_overrides(tenant_id, employee_ids=[employee_id])

    # -- recurring rules ---------------------------------------------------

    async def save_recurring_status(
        self,
        tenant_id: int,
        employee_id: int,
        day_of_week: int | str,
        text: str | None,
    ) -> RecurringStatusRule | None:
        """Upsert the rule for one weekday; empty text removes it.

        Returns the saved rule, or None when the day was cleared.
        """
        day = parse_day_of_week(day_of_week)
        status = (text or "").strip()
        await self._require_employee(tenant_id, employee_id)

        if not status:
            await self._store.delete_recurring_rule(tenant_id, employee_id, day)
            return None
        return await self._store.upsert_recurring_rule(
            tenant_id, employee_id, day, clean_status(status),
        )

    async def list_recurring_statuses(
        self, tenant_id: int, employee_id: int,
    ) -> list[RecurringStatusRule]:
        return await self._store.list_recurring_rules(tenant_id, employee_ids=[employee_id])

    async def set_recurring_enabled(
        self, tenant_id: int, employee_id: int, enabled: bool,
    ) -> Employee:
        updated = await self._store.set_recurring_enabled(tenant_id, employee_id, enabled)
        return self._require(updated, employee_id)

    # -- helpers -------------------------------------------------------------

    async def _require_employee(self, tenant_id: int, employee_id: int) -> Employee:
        employee = await self._store.get_employee(tenant_id, employee_id)
        return self._require(employee, employee_id)

    @staticmethod
    def _require(employee: Employee | None, employee_id: int) -> Employee:
        if employee is None:
            raise NotFoundError(f"Employee #{employee_id} not found")
        return employee
