"""Telegram message surface — implements MessageSurface.

The first render sends a new message; every later render edits that same
message in place. Blank text is never sent (Telegram rejects it).
"""

from __future__ import annotations

import logging

from telegram import Bot, Message
from telegram.error import BadRequest

logger = logging.getLogger(__name__)


class TelegramMessageSurface:
    """Telegram implementation of MessageSurface: one bot message redrawn as a reply is revealed."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._message: Message | None = None

    @property
    def message(self) -> Message | None:
        return self._message

    async def render(self, text: str) -> None:
        if not text.strip():
            return
        if self._message is None:
            self._message = await self._bot.send_message(chat_id=self._chat_id, text=text)
            return
        try:
            await self._message.edit_text(text)
        except BadRequest as exc:
            if "not modified" in str(exc).lower():
                logger.debug("Skipped edit, message unchanged")
                return
            raise
