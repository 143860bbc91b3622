"""Telegram notification adapter — implements NotificationPort.

Wraps a telegram.Bot instance to satisfy the NotificationPort protocol.
Reminder permission is the user's notifications_enabled flag.
"""

from __future__ import annotations

import asyncio
import logging

from telegram import Bot

from stoa.data.db import UserDB

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot, user_db: UserDB | None = None) -> None:
        self._bot = bot
        self._users = user_db

    async def check_status(self, user_id: int) -> bool:
        if self._users is None:
            return True
        user = await asyncio.to_thread(self._users.get_user, user_id)
        return user is not None and user.signed_in and user.notifications_enabled

    async def send_message(self, user_id: int, text: str) -> None:
        await self._bot.send_message(chat_id=user_id, text=text)
