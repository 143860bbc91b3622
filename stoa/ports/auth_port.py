"""Authentication port — abstract interface for account sessions.

Core modules depend on this protocol, never on a specific identity provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class AuthError(Exception):
    """Raised when any authentication operation fails."""


class SignInCancelled(AuthError):
    """The user backed out of an interactive sign-in. Not an error to display."""


@dataclass
class Session:
    user_id: int
    display_name: str
    provider: str


class AuthPort(Protocol):
    """Abstract authentication interface used by core modules."""

    async def sign_in(
        self, provider: str, user_id: int, display_name: str
    ) -> Session: ...

    async def sign_out(self, user_id: int) -> None: ...

    async def delete_account(self, user_id: int) -> None: ...

    async def is_signed_in(self, user_id: int) -> bool: ...
