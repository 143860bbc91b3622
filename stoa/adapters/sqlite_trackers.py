"""SQLite habit / task managers — implement HabitManagerPort and TaskManagerPort.

HabitDB / TaskDB are synchronous; every call is wrapped with
asyncio.to_thread so the bot's event loop never blocks on disk I/O.
Failures surface as TrackerError with the cause chained.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date, datetime

from stoa.core.cards import habit_share_text, task_share_text, with_import_link
from stoa.core.importer import build_share_link, habit_to_payload, task_to_payload
from stoa.core.stats import compute_habit_stats, compute_task_stats, is_completed_on
from stoa.data.db import HabitDB, TaskDB
from stoa.data.models import Habit, HabitEntry, HabitMood, HabitStats, Task, TaskStats
from stoa.ports.tracker_port import TrackerError

logger = logging.getLogger(__name__)


class SQLiteHabitManager:
    """SQLite implementation of HabitManagerPort."""

    def __init__(self, db: HabitDB | None = None) -> None:
        self._db = db or HabitDB()

    async def _call(self, operation: str, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except TrackerError:
            raise
        except Exception as exc:
            logger.error("Habit store error (%s): %s", operation, exc)
            raise TrackerError(f"Failed to {operation}: {exc}") from exc

    async def load_all(self, user_id: int) -> list[Habit]:
        return await self._call("load habits", self._db.list_habits, user_id)

    async def get(self, habit_id: str) -> Habit | None:
        return await self._call("load habit", self._db.get_habit, habit_id)

    async def create(self, habit: Habit) -> Habit:
        return await self._call("create habit", self._db.add_habit, habit)

    async def update(self, habit: Habit) -> Habit:
        return await self._call("update habit", self._db.update_habit, habit)

    async def delete(self, habit: Habit) -> None:
        deleted = await self._call("delete habit", self._db.delete_habit, habit.id)
        if not deleted:
            raise TrackerError(f"Habit {habit.id} not found.")

    async def toggle_active(self, habit: Habit) -> Habit:
        habit.is_active = not habit.is_active
        await self.update(habit)
        logger.info(
            "Habit %s %s", habit.id, "activated" if habit.is_active else "paused"
        )
        return habit

    async def record_completion(
        self,
        habit: Habit,
        notes: str | None = None,
        rating: int | None = None,
        reflection: str | None = None,
        mood: HabitMood | None = None,
    ) -> None:
        if rating is not None and not 1 <= rating <= 5:
            raise TrackerError(f"Rating must be between 1 and 5, got {rating}.")

        entry = HabitEntry(
            id=str(uuid.uuid4()),
            habit_id=habit.id,
            completed_at=datetime.now().isoformat(),
            notes=notes or None,
            rating=rating,
            reflection=reflection or None,
            mood=mood,
            user_id=habit.user_id,
        )
        await self._call("record check-in", self._db.add_entry, entry)

    async def _entries(self, habit: Habit) -> list[HabitEntry]:
        return await self._call("load check-ins", self._db.list_entries, habit.id)

    async def is_completed_today(self, habit: Habit) -> bool:
        return is_completed_on(habit, await self._entries(habit), date.today())

    async def get_stats(self, habit: Habit) -> HabitStats:
        return compute_habit_stats(habit, await self._entries(habit))

    async def share(self, habit: Habit) -> tuple[str, str | None]:
        link = build_share_link("habit", habit_to_payload(habit))
        return with_import_link(habit_share_text(habit), link), link


class SQLiteTaskManager:
    """SQLite implementation of TaskManagerPort."""

    def __init__(self, db: TaskDB | None = None) -> None:
        self._db = db or TaskDB()

    async def _call(self, operation: str, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except TrackerError:
            raise
        except Exception as exc:
            logger.error("Task store error (%s): %s", operation, exc)
            raise TrackerError(f"Failed to {operation}: {exc}") from exc

    async def load_all(self, user_id: int) -> list[Task]:
        return await self._call("load tasks", self._db.list_tasks, user_id)

    async def get(self, task_id: str) -> Task | None:
        return await self._call("load task", self._db.get_task, task_id)

    async def create(self, task: Task) -> Task:
        return await self._call("create task", self._db.add_task, task)

    async def update(self, task: Task) -> Task:
        return await self._call("update task", self._db.update_task, task)

    async def delete(self, task: Task) -> None:
        deleted = await self._call("delete task", self._db.delete_task, task.id)
        if not deleted:
            raise TrackerError(f"Task {task.id} not found.")

    async def toggle_active(self, task: Task) -> Task:
        task.is_active = not task.is_active
        return await self.update(task)

    async def toggle_completion(self, task: Task) -> Task:
        task.is_completed = not task.is_completed
        task.completed_at = datetime.now().isoformat() if task.is_completed else None
        await self.update(task)
        logger.info(
            "Task %s marked %s", task.id, "done" if task.is_completed else "open"
        )
        return task

    async def toggle_step(self, task: Task, step_id: str) -> Task:
        for step in task.steps:
            if step.id == step_id:
                step.is_completed = not step.is_completed
                break
        else:
            raise TrackerError(f"Step {step_id} not found in task {task.id}.")
        return await self.update(task)

    async def get_stats(self, task: Task) -> TaskStats:
        return compute_task_stats(task)

    async def share(self, task: Task) -> tuple[str, str | None]:
        link = build_share_link("task", task_to_payload(task))
        return with_import_link(task_share_text(task), link), link
