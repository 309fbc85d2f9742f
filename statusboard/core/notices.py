"""Session-guarded failure notices."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from statusboard.ports.notification_port import NotificationPort
    from statusboard.ports.session_port import SessionPort

logger = logging.getLogger(__name__)


async def notify_if_authenticated(
    notifier: NotificationPort | None,
    session: SessionPort | None,
    text: str,
) -> bool:
    """Send `text` only while the session is still signed in.

    Failures that race a sign-out or an account deletion stay silent.
    Returns True if the notice was sent.
    """
    if notifier is None or session is None:
        return False
    try:
        if not await session.is_authenticated():
            logger.debug("Session for chat %d ended; notice suppressed", session.chat_id)
            return False
        await notifier.notify(session.chat_id, text)
    except Exception as exc:
        logger.error("Failed to send notice to chat %d: %s", session.chat_id, exc)
        return False
    return True
