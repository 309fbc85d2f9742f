"""Telegram notification adapter — implements NotificationPort.

Wraps a telegram.Bot instance; a transient notice is a plain chat message.
"""

from __future__ import annotations

import logging

from telegram import Bot

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def notify(self, chat_id: int, text: str) -> None:
        logger.debug("Notice to chat %d: %s", chat_id, text)
        await self._bot.send_message(chat_id=chat_id, text=f"⚠️ {text}")
