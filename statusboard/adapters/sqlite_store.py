"""SQLite store adapter — implements StatusStorePort.

Wraps the synchronous SQLite classes from statusboard.data.db. Each call
runs in a worker thread so it is a real suspend point on the event loop,
and every successful write is published on the change feed.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import TYPE_CHECKING, Any, Callable, Iterable

from statusboard.core.change_feed import ChangeEvent
from statusboard.data.db import EmployeeDB, ScheduleDB, StatusOptionDB, TenantDB
from statusboard.ports.store_port import StoreError

if TYPE_CHECKING:
    from statusboard.core.change_feed import ChangeFeed
    from statusboard.data.models import (
        DailyMessage,
        Employee,
        PredefinedStatus,
        RecurringStatusRule,
        ScheduledStatusOverride,
        Tenant,
    )

logger = logging.getLogger(__name__)


class SQLiteStatusStore:
    """SQLite implementation of StatusStorePort."""

    def __init__(
        self,
        db_path: str | None = None,
        feed: ChangeFeed | None = None,
        default_status: str | None = None,
    ) -> None:
        if default_status is None:
            from statusboard.config import settings
            default_status = settings.DEFAULT_EMPLOYEE_STATUS

        self.tenants = TenantDB(db_path)
        self._employees = EmployeeDB(db_path)
        self._schedules = ScheduleDB(db_path)
        self._options = StatusOptionDB(db_path)
        self._feed = feed
        self._default_status = default_status

    async def _run(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except sqlite3.Error as exc:
            logger.error("SQLite error in %s: %s", func.__name__, exc)
            raise StoreError(str(exc)) from exc

    async def _publish(
        self, tenant_id: int, table: str, action: str, record_id: int | None = None,
    ) -> None:
        if self._feed is not None:
            await self._feed.publish(ChangeEvent(tenant_id, table, action, record_id))

    # -- employees ---------------------------------------------------------

    async def list_employees(self, tenant_id: int) -> list[Employee]:
        return await self._run(self._employees.list_employees, tenant_id)

    async def list_pending_employees(self, tenant_id: int, today: str) -> list[Employee]:
        return await self._run(self._employees.list_pending, tenant_id, today)

    async def get_employee(self, tenant_id: int, employee_id: int) -> Employee | None:
        return await self._run(self._employees.get_employee, tenant_id, employee_id)

    async def add_employee(self, tenant_id: int, name: str) -> Employee:
        employee = await self._run(
            self._employees.add_employee, tenant_id, name, self._default_status,
        )
        await self._publish(tenant_id, "employees", "insert", employee.id)
        return employee

    async def update_employee_fields(
        self, tenant_id: int, employee_id: int, **fields: object,
    ) -> Employee | None:
        updated = await self._run(
            self._employees.update_fields, tenant_id, employee_id, **fields,
        )
        if updated is not None:
            await self._publish(tenant_id, "employees", "update", employee_id)
        return updated

    async def set_manual_status(
        self, tenant_id: int, employee_id: int, status: str,
    ) -> Employee | None:
        return await self.update_employee_fields(tenant_id, employee_id, status=status)

    async def set_recurring_enabled(
        self, tenant_id: int, employee_id: int, enabled: bool,
    ) -> Employee | None:
        return await self.update_employee_fields(
            tenant_id, employee_id, recurring_enabled=enabled,
        )

    async def set_avatar(
        self, tenant_id: int, employee_id: int, image_url: str | None,
    ) -> Employee | None:
        return await self.update_employee_fields(tenant_id, employee_id, image_url=image_url)

    async def delete_employee(self, tenant_id: int, employee_id: int) -> bool:
        deleted = await self._run(self._employees.delete_employee, tenant_id, employee_id)
        if deleted:
            await self._publish(tenant_id, "employees", "delete", employee_id)
        return deleted

    async def apply_status(
        self,
        tenant_id: int,
        employee_id: int,
        status: str,
        applied_date: str,
        expected_version: int,
    ) -> Employee | None:
        updated = await self._run(
            self._employees.apply_status,
            tenant_id, employee_id, status, applied_date, expected_version,
        )
        if updated is not None:
            await self._publish(tenant_id, "employees", "update", employee_id)
        return updated

    async def clear_applied(self, tenant_id: int, employee_id: int) -> Employee | None:
        updated = await self._run(self._employees.clear_applied, tenant_id, employee_id)
        if updated is not None:
            await self._publish(tenant_id, "employees", "update", employee_id)
        return updated

    # -- recurring rules ---------------------------------------------------

    async def list_recurring_rules(
        self,
        tenant_id: int,
        employee_ids: Iterable[int] | None = None,
        day_of_week: int | None = None,
    ) -> list[RecurringStatusRule]:
        ids = list(employee_ids) if employee_ids is not None else None
        return await self._run(self._schedules.list_rules, tenant_id, ids, day_of_week)

    async def upsert_recurring_rule(
        self, tenant_id: int, employee_id: int, day_of_week: int, status_text: str,
    ) -> RecurringStatusRule:
        rule = await self._run(
            self._schedules.upsert_rule, tenant_id, employee_id, day_of_week, status_text,
        )
        await self._publish(tenant_id, "recurring_statuses", "update", rule.id)
        return rule

    async def delete_recurring_rule(
        self, tenant_id: int, employee_id: int, day_of_week: int,
    ) -> bool:
        deleted = await self._run(
            self._schedules.delete_rule, tenant_id, employee_id, day_of_week,
        )
        if deleted:
            await self._publish(tenant_id, "recurring_statuses", "delete")
        return deleted

    # -- scheduled overrides -----------------------------------------------

    async def list_overrides(
        self,
        tenant_id: int,
        employee_ids: Iterable[int] | None = None,
        scheduled_date: str | None = None,
    ) -> list[ScheduledStatusOverride]:
        ids = list(employee_ids) if employee_ids is not None else None
        return await self._run(self._schedules.list_overrides, tenant_id, ids, scheduled_date)

    async def add_override(
        self, tenant_id: int, employee_id: int, scheduled_date: str, status_text: str,
    ) -> ScheduledStatusOverride:
        override = await self._run(
            self._schedules.add_override, tenant_id, employee_id, scheduled_date, status_text,
        )
        await self._publish(tenant_id, "scheduled_statuses", "insert", override.id)
        return override

    async def delete_override(self, tenant_id: int, override_id: int) -> bool:
        deleted = await self._run(self._schedules.delete_override, tenant_id, override_id)
        if deleted:
            await self._publish(tenant_id, "scheduled_statuses", "delete", override_id)
        return deleted

    async def mark_override_applied(
        self, tenant_id: int, override_id: int, applied_date: str,
    ) -> bool:
        marked = await self._run(
            self._schedules.mark_override_applied, tenant_id, override_id, applied_date,
        )
        if marked:
            await self._publish(tenant_id, "scheduled_statuses", "update", override_id)
        return marked

    async def delete_overrides_before(self, tenant_id: int, cutoff: str) -> int:
        purged = await self._run(self._schedules.delete_overrides_before, tenant_id, cutoff)
        if purged:
            await self._publish(tenant_id, "scheduled_statuses", "delete")
        return purged

    # -- predefined statuses -----------------------------------------------

    async def list_predefined_statuses(self, tenant_id: int) -> list[PredefinedStatus]:
        return await self._run(self._options.list_statuses, tenant_id)

    async def add_predefined_statuses(
        self, tenant_id: int, texts: list[str],
    ) -> list[PredefinedStatus]:
        added = await self._run(self._options.add_statuses, tenant_id, texts)
        await self._publish(tenant_id, "predefined_statuses", "insert")
        return added

    async def delete_predefined_status(self, tenant_id: int, status_id: int) -> bool:
        deleted = await self._run(self._options.delete_status, tenant_id, status_id)
        if deleted:
            await self._publish(tenant_id, "predefined_statuses", "delete", status_id)
        return deleted

    # -- tenant --------------------------------------------------------------

    async def get_tenant(self, tenant_id: int) -> Tenant | None:
        return await self._run(self.tenants.get_tenant, tenant_id)

    async def rename_tenant(self, tenant_id: int, company_name: str) -> bool:
        renamed = await self._run(self.tenants.rename_tenant, tenant_id, company_name)
        if renamed:
            await self._publish(tenant_id, "tenants", "update", tenant_id)
        return renamed

    async def get_daily_message(self, tenant_id: int) -> DailyMessage | None:
        return await self._run(self.tenants.get_daily_message, tenant_id)

    async def set_daily_message(self, tenant_id: int, message_text: str) -> DailyMessage:
        message = await self._run(self.tenants.set_daily_message, tenant_id, message_text)
        await self._publish(tenant_id, "daily_messages", "update", tenant_id)
        return message

    async def delete_tenant(self, tenant_id: int) -> None:
        await self._run(self.tenants.delete_tenant, tenant_id)
        await self._publish(tenant_id, "tenants", "delete", tenant_id)
