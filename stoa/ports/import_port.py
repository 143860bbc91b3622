"""Import port — abstract interface for turning shared content into entities."""

from __future__ import annotations

from typing import Protocol

from stoa.data.models import Habit, Task


class ImportPort(Protocol):
    """Abstract import interface used by core modules.

    parse_* return True when an importable habit or task was found; on
    failure import_error holds a message for the user.
    """

    importable_habit: Habit | None
    importable_task: Task | None
    import_error: str | None

    async def parse_from_text(self, text: str) -> bool: ...

    async def parse_from_url(self, url: str) -> bool: ...

    async def record_import(self) -> None: ...

    def clear_import(self) -> None: ...
