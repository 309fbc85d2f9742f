"""Session port — who is looking at the board, and are they still signed in."""

from __future__ import annotations

from typing import Protocol


class SessionPort(Protocol):
    """The viewer of a roster load.

    `is_authenticated` is re-checked after a failure, right before a notice
    is sent, so sign-outs and account deletions stay quiet.
    """

    chat_id: int

    async def is_authenticated(self) -> bool: ...
