"""Telegram session adapter — implements SessionPort.

A chat counts as signed in while its user is still a member of a tenant.
Deleting the account removes the membership, which silences late notices.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from statusboard.data.db import TenantDB


class TelegramSession:
    """One Telegram user looking at the board from one chat."""

    def __init__(self, tenants: TenantDB, telegram_user_id: int, chat_id: int) -> None:
        self._tenants = tenants
        self.telegram_user_id = telegram_user_id
        self.chat_id = chat_id

    async def is_authenticated(self) -> bool:
        member = await asyncio.to_thread(self._tenants.get_member, self.telegram_user_id)
        return member is not None
