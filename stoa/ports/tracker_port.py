"""Habit / task manager ports — abstract interfaces for tracked entities.

Core modules depend on these protocols, never on a specific store.
"""

from __future__ import annotations

from typing import Protocol

from stoa.data.models import Habit, HabitMood, HabitStats, Task, TaskStats


class TrackerError(Exception):
    """Raised when any habit or task manager operation fails."""


class HabitManagerPort(Protocol):
    """Abstract habit manager used by core modules."""

    async def load_all(self, user_id: int) -> list[Habit]: ...

    async def get(self, habit_id: str) -> Habit | None: ...

    async def create(self, habit: Habit) -> Habit: ...

    async def update(self, habit: Habit) -> Habit: ...

    async def delete(self, habit: Habit) -> None: ...

    async def toggle_active(self, habit: Habit) -> Habit: ...

    async def record_completion(
        self,
        habit: Habit,
        notes: str | None = None,
        rating: int | None = None,
        reflection: str | None = None,
        mood: HabitMood | None = None,
    ) -> None: ...

    async def is_completed_today(self, habit: Habit) -> bool: ...

    async def get_stats(self, habit: Habit) -> HabitStats: ...

    async def share(self, habit: Habit) -> tuple[str, str | None]: ...


class TaskManagerPort(Protocol):
    """Abstract task manager used by core modules."""

    async def load_all(self, user_id: int) -> list[Task]: ...

    async def get(self, task_id: str) -> Task | None: ...

    async def create(self, task: Task) -> Task: ...

    async def update(self, task: Task) -> Task: ...

    async def delete(self, task: Task) -> None: ...

    async def toggle_active(self, task: Task) -> Task: ...

    async def toggle_completion(self, task: Task) -> Task: ...

    async def toggle_step(self, task: Task, step_id: str) -> Task: ...

    async def get_stats(self, task: Task) -> TaskStats: ...

    async def share(self, task: Task) -> tuple[str, str | None]: ...
