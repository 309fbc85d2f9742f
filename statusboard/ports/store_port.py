"""Store port — abstract interface over the tenant-isolated persistent store.

Core modules depend on this protocol, never on a specific database. Every
method takes the tenant explicitly; nothing relies on ambient scoping.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from statusboard.data.models import (
    DailyMessage,
    Employee,
    PredefinedStatus,
    RecurringStatusRule,
    ScheduledStatusOverride,
    Tenant,
)


class StoreError(Exception):
    """Raised when any persistence operation fails."""


class StatusStorePort(Protocol):
    """Abstract store interface used by the resolver and the services."""

    # Employees

    async def list_employees(self, tenant_id: int) -> list[Employee]: ...

    async def list_pending_employees(self, tenant_id: int, today: str) -> list[Employee]: ...

    async def get_employee(self, tenant_id: int, employee_id: int) -> Employee | None: ...

    async def add_employee(self, tenant_id: int, name: str) -> Employee: ...

    async def update_employee_fields(
        self, tenant_id: int, employee_id: int, **fields: object
    ) -> Employee | None: ...

    async def set_manual_status(
        self, tenant_id: int, employee_id: int, status: str
    ) -> Employee | None: ...

    async def set_recurring_enabled(
        self, tenant_id: int, employee_id: int, enabled: bool
    ) -> Employee | None: ...

    async def set_avatar(
        self, tenant_id: int, employee_id: int, image_url: str | None
    ) -> Employee | None: ...

    async def delete_employee(self, tenant_id: int, employee_id: int) -> bool: ...

    async def apply_status(
        self,
        tenant_id: int,
        employee_id: int,
        status: str,
        applied_date: str,
        expected_version: int,
    ) -> Employee | None: ...

    async def clear_applied(self, tenant_id: int, employee_id: int) -> Employee | None: ...

    # Recurring rules

    async def list_recurring_rules(
        self,
        tenant_id: int,
        employee_ids: Iterable[int] | None = None,
        day_of_week: int | None = None,
    ) -> list[RecurringStatusRule]: ...

    async def upsert_recurring_rule(
        self, tenant_id: int, employee_id: int, day_of_week: int, status_text: str
    ) -> RecurringStatusRule: ...

    async def delete_recurring_rule(
        self, tenant_id: int, employee_id: int, day_of_week: int
    ) -> bool: ...

    # Scheduled overrides

    async def list_overrides(
        self,
        tenant_id: int,
        employee_ids: Iterable[int] | None = None,
        scheduled_date: str | None = None,
    ) -> list[ScheduledStatusOverride]: ...

    async def add_override(
        self, tenant_id: int, employee_id: int, scheduled_date: str, status_text: str
    ) -> ScheduledStatusOverride: ...

    async def delete_override(self, tenant_id: int, override_id: int) -> bool: ...

    async def mark_override_applied(
        self, tenant_id: int, override_id: int, applied_date: str
    ) -> bool: ...

    async def delete_overrides_before(self, tenant_id: int, cutoff: str) -> int: ...

    # Predefined statuses

    async def list_predefined_statuses(self, tenant_id: int) -> list[PredefinedStatus]: ...

    async def add_predefined_statuses(
        self, tenant_id: int, texts: list[str]
    ) -> list[PredefinedStatus]: ...

    async def delete_predefined_status(self, tenant_id: int, status_id: int) -> bool: ...

    # Tenant profile and banner

    async def get_tenant(self, tenant_id: int) -> Tenant | None: ...

    async def rename_tenant(self, tenant_id: int, company_name: str) -> bool: ...

    async def get_daily_message(self, tenant_id: int) -> DailyMessage | None: ...

    async def set_daily_message(self, tenant_id: int, message_text: str) -> DailyMessage: ...

    async def delete_tenant(self, tenant_id: int) -> None: ...
