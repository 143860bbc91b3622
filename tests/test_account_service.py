"""Tests for stoa.core.account_service — sign-in, settings and purchase flows."""

import sqlite3

import pytest
from unittest.mock import AsyncMock, MagicMock

from stoa.core.account_service import AccountService
from stoa.core.tracking_service import (
    ErrorResponse,
    NoActionResponse,
    SuccessResponse,
)
from stoa.ports.auth_port import AuthError, Session, SignInCancelled
from stoa.ports.subscription_port import SubscriptionError, SubscriptionTier


def _make_service(user_db=None):
    auth = MagicMock()
    subscription = MagicMock()
    subscription.current_tier = AsyncMock(return_value=SubscriptionTier.FREE)
    notifier = MagicMock()
    notifier.check_status = AsyncMock(return_value=True)
    service = AccountService(auth, subscription, notifier, user_db or MagicMock())
    return service, auth, subscription, notifier


class TestSignIn:
    @pytest.mark.asyncio
    async def test_welcome(self):
        service, auth, _, _ = _make_service()
        auth.sign_in = AsyncMock(return_value=Session(12345, "Marcus", "telegram"))
        response = await service.sign_in(12345, "Marcus")
        assert isinstance(response, SuccessResponse)
        assert response.message == "Welcome, Marcus!"
        auth.sign_in.assert_awaited_once_with("telegram", 12345, "Marcus")

    @pytest.mark.asyncio
    async def test_cancel_is_silent(self):
        service, auth, _, _ = _make_service()
        auth.sign_in = AsyncMock(side_effect=SignInCancelled())
        response = await service.sign_in(12345, "Marcus")
        assert isinstance(response, NoActionResponse)
        assert response.message == ""

    @pytest.mark.asyncio
    async def test_failure(self):
        service, auth, _, _ = _make_service()
        auth.sign_in = AsyncMock(side_effect=AuthError("network down"))
        response = await service.sign_in(12345, "Marcus")
        assert isinstance(response, ErrorResponse)
        assert "network down" in response.message


class TestAccount:
    @pytest.mark.asyncio
    async def test_sign_out(self):
        service, auth, _, _ = _make_service()
        auth.sign_out = AsyncMock()
        response = await service.sign_out(12345)
        assert isinstance(response, SuccessResponse)
        assert "/start" in response.message

    @pytest.mark.asyncio
    async def test_delete_failure(self):
        service, auth, _, _ = _make_service()
        auth.delete_account = AsyncMock(side_effect=AuthError("No account found to delete."))
        response = await service.delete_account(12345)
        assert isinstance(response, ErrorResponse)
        assert "No account found" in response.message


class TestRestorePurchases:
    @pytest.mark.asyncio
    async def test_premium_restored(self):
        service, _, subscription, _ = _make_service()
        subscription.restore_purchases = AsyncMock(return_value=SubscriptionTier.PREMIUM)
        response = await service.restore_purchases(12345)
        assert isinstance(response, SuccessResponse)
        assert "Premium" in response.message

    @pytest.mark.asyncio
    async def test_nothing_to_restore(self):
        service, _, subscription, _ = _make_service()
        subscription.restore_purchases = AsyncMock(return_value=SubscriptionTier.FREE)
        response = await service.restore_purchases(12345)
        assert isinstance(response, NoActionResponse)

    @pytest.mark.asyncio
    async def test_error(self):
        service, _, subscription, _ = _make_service()
        subscription.restore_purchases = AsyncMock(side_effect=SubscriptionError("store down"))
        response = await service.restore_purchases(12345)
        assert isinstance(response, ErrorResponse)


class TestSettings:
    @pytest.mark.asyncio
    async def test_summary(self):
        service, _, _, notifier = _make_service()
        notifier.check_status.return_value = False
        response = await service.settings_summary(12345)
        assert response.message == "⚙️ Settings\n\nPlan: Free\nDaily reminders: Off"

    @pytest.mark.asyncio
    async def test_toggle_reminders(self, user_db):
        user_db.add_user(12345, "Marcus")
        service, _, _, _ = _make_service(user_db)

        response = await service.toggle_reminders(12345)
        assert response.message == "Daily reminders turned off."
        assert user_db.get_user(12345).notifications_enabled is False

        response = await service.toggle_reminders(12345)
        assert response.message == "Daily reminders turned on."

    @pytest.mark.asyncio
    async def test_toggle_reminders_unknown_user(self, user_db):
        service, _, _, _ = _make_service(user_db)
        response = await service.toggle_reminders(12345)
        assert isinstance(response, ErrorResponse)

    @pytest.mark.asyncio
    async def test_summary_store_failure(self):
        service, _, _, notifier = _make_service()
        notifier.check_status.side_effect = sqlite3.OperationalError("database is locked")
        response = await service.settings_summary(12345)
        assert isinstance(response, ErrorResponse)
        assert "Couldn't load your settings" in response.message

    @pytest.mark.asyncio
    async def test_toggle_reminders_store_failure(self):
        user_db = MagicMock()
        user_db.get_user.side_effect = sqlite3.OperationalError("disk I/O error")
        service, _, _, _ = _make_service(user_db)
        response = await service.toggle_reminders(12345)
        assert isinstance(response, ErrorResponse)
        assert "Couldn't update your reminders" in response.message
