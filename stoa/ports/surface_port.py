"""Message surface port — where a revealed chat message is drawn."""

from __future__ import annotations

from typing import Protocol


class MessageSurface(Protocol):
    """A single on-screen message that can be redrawn with new text."""

    async def render(self, text: str) -> None: ...
