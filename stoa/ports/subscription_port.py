"""Subscription port — abstract interface for the user's plan."""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class SubscriptionError(Exception):
    """Raised when a subscription operation fails."""


class SubscriptionTier(Enum):
    FREE = "free"
    PREMIUM = "premium"

    @property
    def display_text(self) -> str:
        return self.value.capitalize()


class SubscriptionPort(Protocol):
    """Abstract subscription interface used by core modules."""

    async def current_tier(self, user_id: int) -> SubscriptionTier: ...

    async def restore_purchases(self, user_id: int) -> SubscriptionTier: ...
