"""Telegram identity auth adapter — implements AuthPort.

A Telegram user is already authenticated by Telegram itself, so signing in
just registers (or reactivates) the user row. "telegram" is the only
provider this adapter knows.
"""

from __future__ import annotations

import asyncio
import logging

from stoa.data.db import HabitDB, TaskDB, UserDB
from stoa.ports.auth_port import AuthError, Session

logger = logging.getLogger(__name__)

PROVIDER = "telegram"


class TelegramAuth:
    """UserDB-backed implementation of AuthPort."""

    def __init__(
        self,
        user_db: UserDB | None = None,
        habit_db: HabitDB | None = None,
        task_db: TaskDB | None = None,
    ) -> None:
        self._users = user_db or UserDB()
        self._habits = habit_db or HabitDB()
        self._tasks = task_db or TaskDB()

    async def sign_in(self, provider: str, user_id: int, display_name: str) -> Session:
        if provider != PROVIDER:
            raise AuthError(f"Unsupported sign-in provider: {provider}")
        try:
            user = await asyncio.to_thread(self._users.add_user, user_id, display_name)
        except Exception as exc:
            logger.error("Sign-in failed for %d: %s", user_id, exc)
            raise AuthError(f"Failed to sign in: {exc}") from exc
        logger.info("User %d signed in", user_id)
        return Session(
            user_id=user.telegram_user_id,
            display_name=user.display_name,
            provider=PROVIDER,
        )

    async def sign_out(self, user_id: int) -> None:
        try:
            await asyncio.to_thread(self._users.set_signed_in, user_id, False)
        except Exception as exc:
            logger.error("Sign-out failed for %d: %s", user_id, exc)
            raise AuthError(f"Failed to sign out: {exc}") from exc
        logger.info("User %d signed out", user_id)

    async def delete_account(self, user_id: int) -> None:
        """Remove the user together with every habit, check-in and task they own."""
        try:
            await asyncio.to_thread(self._habits.delete_user_data, user_id)
            await asyncio.to_thread(self._tasks.delete_user_data, user_id)
            deleted = await asyncio.to_thread(self._users.delete_user, user_id)
        except Exception as exc:
            logger.error("Account deletion failed for %d: %s", user_id, exc)
            raise AuthError(f"Failed to delete account: {exc}") from exc
        if not deleted:
            raise AuthError("No account found to delete.")

    async def is_signed_in(self, user_id: int) -> bool:
        try:
            user = await asyncio.to_thread(self._users.get_user, user_id)
        except Exception as exc:
            logger.error("Session lookup failed for %d: %s", user_id, exc)
            raise AuthError(f"Failed to check session: {exc}") from exc
        return user is not None and user.signed_in
