"""Stored-tier subscription adapter — implements SubscriptionPort.

The plan lives on the user row. There is no payment store behind it:
restoring purchases re-reads whatever tier was last recorded.
"""

from __future__ import annotations

import asyncio
import logging

from stoa.data.db import UserDB
from stoa.ports.subscription_port import SubscriptionError, SubscriptionTier

logger = logging.getLogger(__name__)


class StoredTierSubscription:
    """UserDB-backed implementation of SubscriptionPort."""

    def __init__(self, user_db: UserDB | None = None) -> None:
        self._users = user_db or UserDB()

    async def _stored_tier(self, user_id: int) -> SubscriptionTier | None:
        try:
            user = await asyncio.to_thread(self._users.get_user, user_id)
        except Exception as exc:
            logger.error("Tier lookup failed for %d: %s", user_id, exc)
            raise SubscriptionError(f"Failed to load subscription: {exc}") from exc
        if user is None:
            return None
        try:
            return SubscriptionTier(user.tier)
        except ValueError:
            logger.warning("Unknown tier %r for user %d, using free", user.tier, user_id)
            return SubscriptionTier.FREE

    async def current_tier(self, user_id: int) -> SubscriptionTier:
        return await self._stored_tier(user_id) or SubscriptionTier.FREE

    async def restore_purchases(self, user_id: int) -> SubscriptionTier:
        tier = await self._stored_tier(user_id)
        if tier is None:
            raise SubscriptionError("No account found to restore purchases for.")
        logger.info("Purchases restored for %d: %s", user_id, tier.value)
        return tier
