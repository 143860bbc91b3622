"""Notification port — abstract interface for reaching users outside a chat turn.

Core modules depend on this protocol, never on a specific messaging provider.
"""

from __future__ import annotations

from typing import Protocol


class NotificationPort(Protocol):
    """Abstract notification interface used by core modules."""

    async def check_status(self, user_id: int) -> bool:
        """Return True if the user currently allows reminders."""
        ...

    async def send_message(self, user_id: int, text: str) -> None: ...
