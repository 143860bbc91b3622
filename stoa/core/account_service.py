"""
Stoa Assistant — Account Service.

Sign-in, sign-out, account deletion, purchase restore and settings flows.
Collaborator errors become display-only ErrorResponses; a cancelled
sign-in is dismissed without a message.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import TYPE_CHECKING

from stoa.core.tracking_service import (
    ErrorResponse,
    NoActionResponse,
    ResponseKind,
    ServiceResponse,
    SuccessResponse,
)
from stoa.ports.auth_port import AuthError, SignInCancelled
from stoa.ports.subscription_port import SubscriptionError, SubscriptionTier

if TYPE_CHECKING:
    from stoa.data.db import UserDB
    from stoa.ports.auth_port import AuthPort
    from stoa.ports.notification_port import NotificationPort
    from stoa.ports.subscription_port import SubscriptionPort

logger = logging.getLogger(__name__)


class AccountService:
    """Returns structured response objects — never sends messages directly."""

    def __init__(
        self,
        auth: AuthPort,
        subscription: SubscriptionPort,
        notifier: NotificationPort,
        user_db: UserDB,
    ) -> None:
        self._auth = auth
        self._subscription = subscription
        self._notifier = notifier
        self._users = user_db

    async def sign_in(
        self, user_id: int, display_name: str, provider: str = "telegram",
    ) -> ServiceResponse:
        try:
            session = await self._auth.sign_in(provider, user_id, display_name)
        except SignInCancelled:
            logger.info("Sign-in cancelled by %d", user_id)
            return NoActionResponse(kind=ResponseKind.NO_ACTION, message="")
        except AuthError as exc:
            logger.error("Sign-in failed for %d: %s", user_id, exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR, message=f"Sign-in failed: {exc}",
            )
        return SuccessResponse(
            kind=ResponseKind.SUCCESS, message=f"Welcome, {session.display_name}!",
        )

    async def sign_out(self, user_id: int) -> ServiceResponse:
        try:
            await self._auth.sign_out(user_id)
        except AuthError as exc:
            logger.error("Sign-out failed for %d: %s", user_id, exc)
            return ErrorResponse(kind=ResponseKind.ERROR, message=f"Sign-out failed: {exc}")
        return SuccessResponse(
            kind=ResponseKind.SUCCESS,
            message="You're signed out. Send /start whenever you want to come back.",
        )

    async def delete_account(self, user_id: int) -> ServiceResponse:
        try:
            await self._auth.delete_account(user_id)
        except AuthError as exc:
            logger.error("Account deletion failed for %d: %s", user_id, exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR, message=f"Couldn't delete your account: {exc}",
            )
        logger.info("Account %d deleted", user_id)
        return SuccessResponse(
            kind=ResponseKind.SUCCESS,
            message="Your account and all of its habits, check-ins and tasks were deleted.",
        )

    async def restore_purchases(self, user_id: int) -> ServiceResponse:
        try:
            tier = await self._subscription.restore_purchases(user_id)
        except SubscriptionError as exc:
            logger.error("Restore failed for %d: %s", user_id, exc)
            return ErrorResponse(kind=ResponseKind.ERROR, message=f"Restore failed: {exc}")
        if tier is SubscriptionTier.PREMIUM:
            return SuccessResponse(
                kind=ResponseKind.SUCCESS, message="Purchases restored. You're on Premium ✨",
            )
        return NoActionResponse(
            kind=ResponseKind.NO_ACTION, message="No active Premium purchase was found.",
        )

    async def settings_summary(self, user_id: int) -> ServiceResponse:
        """Plan and reminder status for the settings screen."""
        try:
            tier = await self._subscription.current_tier(user_id)
            reminders = await self._notifier.check_status(user_id)
        except (SubscriptionError, sqlite3.Error) as exc:
            logger.error("Settings lookup failed for %d: %s", user_id, exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR, message="Couldn't load your settings. Please try again.",
            )
        message = (
            "⚙️ Settings\n\n"
            f"Plan: {tier.display_text}\n"
            f"Daily reminders: {'On' if reminders else 'Off'}"
        )
        return SuccessResponse(kind=ResponseKind.SUCCESS, message=message)

    async def toggle_reminders(self, user_id: int) -> ServiceResponse:
        try:
            user = await asyncio.to_thread(self._users.get_user, user_id)
            if user is None:
                return ErrorResponse(
                    kind=ResponseKind.ERROR, message="Please send /start to sign in first.",
                )
            enabled = not user.notifications_enabled
            await asyncio.to_thread(self._users.set_notifications, user_id, enabled)
        except sqlite3.Error as exc:
            logger.error("Reminder toggle failed for %d: %s", user_id, exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message="Couldn't update your reminders. Please try again.",
            )
        logger.info("Reminders %s for %d", "enabled" if enabled else "disabled", user_id)
        return SuccessResponse(
            kind=ResponseKind.SUCCESS,
            message=f"Daily reminders turned {'on' if enabled else 'off'}.",
        )
