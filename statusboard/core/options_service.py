"""
Status Board — Tenant options.

Predefined quick-select statuses, company name, the announcement banner,
and account deletion.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from statusboard.core.notices import notify_if_authenticated
from statusboard.core.validation import NotFoundError, clean_name, clean_status
from statusboard.ports.store_port import StoreError

if TYPE_CHECKING:
    from statusboard.data.models import DailyMessage, PredefinedStatus
    from statusboard.ports.notification_port import NotificationPort
    from statusboard.ports.session_port import SessionPort
    from statusboard.ports.store_port import StatusStorePort

logger = logging.getLogger(__name__)

DEFAULT_STATUSES = ("In", "Out")


class OptionsService:
    """Entry points behind the options page and the banner editor."""

    def __init__(
        self,
        store: StatusStorePort,
        notifier: NotificationPort | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier

    async def list_statuses(
        self, tenant_id: int, session: SessionPort | None = None,
    ) -> list[PredefinedStatus]:
        """Return the tenant's choices, creating In/Out the first time."""
        try:
            statuses = await self._store.list_predefined_statuses(tenant_id)
            if not statuses:
                if session is not None and not await session.is_authenticated():
                    return []
                statuses = await self._store.add_predefined_statuses(
                    tenant_id, list(DEFAULT_STATUSES),
                )
                logger.info("Default statuses created for tenant #%d", tenant_id)
        except StoreError as exc:
            logger.error("Failed to load status options for tenant #%d: %s", tenant_id, exc)
            await notify_if_authenticated(
                self._notifier, session, "Failed to load status options",
            )
            raise
        return statuses

    async def add_status(self, tenant_id: int, text: str) -> PredefinedStatus:
        added = await self._store.add_predefined_statuses(tenant_id, [clean_status(text)])
        return added[0]

    async def remove_status(self, tenant_id: int, status_id: int) -> None:
        if not await self._store.delete_predefined_status(tenant_id, status_id):
            raise NotFoundError(f"Status #{status_id} not found")

    async def company_name(self, tenant_id: int) -> str:
        tenant = await self._store.get_tenant(tenant_id)
        return tenant.company_name if tenant else ""

    async def rename_company(self, tenant_id: int, name: str) -> str:
        cleaned = clean_name(name, label="Company name")
        if not await self._store.rename_tenant(tenant_id, cleaned):
            raise NotFoundError("Company not found")
        return cleaned

    async def get_banner(self, tenant_id: int) -> str:
        message = await self._store.get_daily_message(tenant_id)
        return message.message_text if message else ""

    async def set_banner(self, tenant_id: int, text: str | None) -> DailyMessage:
        """Replace the banner. Empty text hides it."""
        return await self._store.set_daily_message(tenant_id, (text or "").strip())

    async def delete_account(self, tenant_id: int) -> None:
        """Remove the tenant with every employee, rule, override and option."""
        await self._store.delete_tenant(tenant_id)
        logger.info("Account for tenant #%d deleted", tenant_id)
