"""
Stoa Assistant — UI-Agnostic Tracking Service.

Stateless service layer for habit, task and import flows: load entities
from the managers -> apply the action -> return structured response
objects. Free-tier limits are enforced here, before anything is created or
reactivated.

Each UI adapter (Telegram today) calls this service and renders the
response objects in its own way. Pending imports live with the caller, which
passes its ImportPort in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from stoa.core.cards import (
    habit_card,
    habit_stats_text,
    import_preview_text,
    task_card,
)
from stoa.ports.subscription_port import SubscriptionError, SubscriptionTier
from stoa.ports.tracker_port import TrackerError

if TYPE_CHECKING:
    from stoa.data.models import Habit, HabitMood, HabitStats, Task, TaskStats
    from stoa.ports.import_port import ImportPort
    from stoa.ports.subscription_port import SubscriptionPort
    from stoa.ports.tracker_port import HabitManagerPort, TaskManagerPort

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


class ResponseKind(Enum):
    SUCCESS = "success"
    ERROR = "error"
    NO_ACTION = "no_action"
    LIST = "list"
    IMPORT_PREVIEW = "import_preview"
    SHARE = "share"
    PAYWALL = "paywall"
    STATS = "stats"


@dataclass
class HabitListItem:
    habit: Habit
    completed_today: bool
    text: str


@dataclass
class TaskListItem:
    task: Task
    stats: TaskStats
    text: str


# --- Response dataclasses ---

@dataclass
class ServiceResponse:
    kind: ResponseKind
    message: str


@dataclass
class SuccessResponse(ServiceResponse):
    habit: Habit | None = None
    task: Task | None = None


@dataclass
class ErrorResponse(ServiceResponse):
    pass


@dataclass
class NoActionResponse(ServiceResponse):
    pass


@dataclass
class HabitListResponse(ServiceResponse):
    items: list[HabitListItem] = field(default_factory=list)


@dataclass
class TaskListResponse(ServiceResponse):
    items: list[TaskListItem] = field(default_factory=list)


@dataclass
class ImportPreviewResponse(ServiceResponse):
    habit: Habit | None = None
    task: Task | None = None


@dataclass
class ShareResponse(ServiceResponse):
    link: str | None = None


@dataclass
class PaywallResponse(ServiceResponse):
    entity: str = ""        # "habit" | "task"
    limit: int = 0


@dataclass
class StatsResponse(ServiceResponse):
    habit_stats: HabitStats | None = None
    task_stats: TaskStats | None = None


def _error(message: str) -> ErrorResponse:
    return ErrorResponse(kind=ResponseKind.ERROR, message=message)


def _not_found(entity: str) -> ErrorResponse:
    return _error(f"That {entity} no longer exists.")


# ---------------------------------------------------------------------------
# TrackingService
# ---------------------------------------------------------------------------


class TrackingService:
    """Stateless orchestration of habit / task / import flows.

    Returns structured response objects — never sends messages directly.
    """

    def __init__(
        self,
        habits: HabitManagerPort,
        tasks: TaskManagerPort,
        subscription: SubscriptionPort,
        free_habit_limit: int | None = None,
        free_task_limit: int | None = None,
    ) -> None:
        if free_habit_limit is None or free_task_limit is None:
            from stoa.config import settings
            if free_habit_limit is None:
                free_habit_limit = settings.FREE_HABIT_LIMIT
            if free_task_limit is None:
                free_task_limit = settings.FREE_TASK_LIMIT

        self._habits = habits
        self._tasks = tasks
        self._subscription = subscription
        self._free_habit_limit = free_habit_limit
        self._free_task_limit = free_task_limit

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _own_habit(self, user_id: int, habit_id: str) -> Habit | None:
        habit = await self._habits.get(habit_id)
        if habit is None or habit.user_id != user_id:
            return None
        return habit

    async def _own_task(self, user_id: int, task_id: str) -> Task | None:
        task = await self._tasks.get(task_id)
        if task is None or task.user_id != user_id:
            return None
        return task

    # ------------------------------------------------------------------
    # Paywall
    # ------------------------------------------------------------------

    async def _paywall_for(self, user_id: int, entity: str) -> PaywallResponse | None:
        """Return a paywall response if one more active entity would exceed the free tier."""
        tier = await self._subscription.current_tier(user_id)
        if tier is SubscriptionTier.PREMIUM:
            return None

        if entity == "habit":
            limit = self._free_habit_limit
            active = [h for h in await self._habits.load_all(user_id) if h.is_active]
        else:
            limit = self._free_task_limit
            active = [t for t in await self._tasks.load_all(user_id) if t.is_active]

        if len(active) < limit:
            return None

        logger.info("User %d hit the free %s limit (%d)", user_id, entity, limit)
        return PaywallResponse(
            kind=ResponseKind.PAYWALL,
            message=(
                f"The free plan includes up to {limit} active {entity}s. "
                f"Pause one or upgrade to Premium to add more."
            ),
            entity=entity,
            limit=limit,
        )

    # ------------------------------------------------------------------
    # Habits
    # ------------------------------------------------------------------

    async def list_habits(self, user_id: int) -> ServiceResponse:
        try:
            habits = await self._habits.load_all(user_id)
            items = []
            for habit in habits:
                done = await self._habits.is_completed_today(habit) if habit.is_active else False
                items.append(HabitListItem(habit, done, habit_card(habit, done)))
        except TrackerError as exc:
            logger.error("list_habits failed for %d: %s", user_id, exc)
            return _error("Couldn't load your habits. Please try again later.")

        if not items:
            return NoActionResponse(
                kind=ResponseKind.NO_ACTION,
                message="You have no habits yet. Chat with your coach to create one, or /import a shared habit.",
            )
        return HabitListResponse(kind=ResponseKind.LIST, message="Your habits:", items=items)

    async def check_in(
        self,
        user_id: int,
        habit_id: str,
        notes: str | None = None,
        rating: int | None = None,
        reflection: str | None = None,
        mood: HabitMood | None = None,
    ) -> ServiceResponse:
        try:
            habit = await self._own_habit(user_id, habit_id)
            if habit is None:
                return _not_found("habit")
            if not habit.is_active:
                return _error(f"'{habit.name}' is paused. Resume it before checking in.")
            await self._habits.record_completion(
                habit, notes=notes, rating=rating, reflection=reflection, mood=mood,
            )
            stats = await self._habits.get_stats(habit)
        except TrackerError as exc:
            logger.error("check_in failed for habit %s: %s", habit_id, exc)
            return _error("Couldn't save your check-in. Please try again.")

        message = f"✅ Checked in: {habit.name}"
        if mood is not None:
            message += f" {mood.emoji}"
        if stats.current_streak > 1:
            message += f"\n🔥 {stats.current_streak}-day streak!"
        return SuccessResponse(kind=ResponseKind.SUCCESS, message=message, habit=habit)

    async def toggle_habit_active(self, user_id: int, habit_id: str) -> ServiceResponse:
        try:
            habit = await self._own_habit(user_id, habit_id)
            if habit is None:
                return _not_found("habit")
            if not habit.is_active:
                paywall = await self._paywall_for(user_id, "habit")
                if paywall is not None:
                    return paywall
            habit = await self._habits.toggle_active(habit)
        except (TrackerError, SubscriptionError) as exc:
            logger.error("toggle_habit_active failed for %s: %s", habit_id, exc)
            return _error("Couldn't update the habit. Please try again.")

        state = "resumed" if habit.is_active else "paused"
        return SuccessResponse(
            kind=ResponseKind.SUCCESS, message=f"'{habit.name}' {state}.", habit=habit,
        )

    async def delete_habit(self, user_id: int, habit_id: str) -> ServiceResponse:
        try:
            habit = await self._own_habit(user_id, habit_id)
            if habit is None:
                return _not_found("habit")
            await self._habits.delete(habit)
        except TrackerError as exc:
            logger.error("delete_habit failed for %s: %s", habit_id, exc)
            return _error("Couldn't delete the habit. Please try again.")
        return SuccessResponse(kind=ResponseKind.SUCCESS, message=f"🗑 Deleted '{habit.name}'.")

    async def habit_stats(self, user_id: int, habit_id: str) -> ServiceResponse:
        try:
            habit = await self._own_habit(user_id, habit_id)
            if habit is None:
                return _not_found("habit")
            stats = await self._habits.get_stats(habit)
        except TrackerError as exc:
            logger.error("habit_stats failed for %s: %s", habit_id, exc)
            return _error("Couldn't load statistics. Please try again.")
        return StatsResponse(
            kind=ResponseKind.STATS, message=habit_stats_text(habit, stats), habit_stats=stats,
        )

    async def share_habit(self, user_id: int, habit_id: str) -> ServiceResponse:
        try:
            habit = await self._own_habit(user_id, habit_id)
            if habit is None:
                return _not_found("habit")
            text, link = await self._habits.share(habit)
        except TrackerError as exc:
            logger.error("share_habit failed for %s: %s", habit_id, exc)
            return _error("Couldn't create a share link. Please try again.")
        return ShareResponse(kind=ResponseKind.SHARE, message=text, link=link)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def list_tasks(self, user_id: int) -> ServiceResponse:
        try:
            tasks = await self._tasks.load_all(user_id)
            items = []
            for task in tasks:
                stats = await self._tasks.get_stats(task)
                items.append(TaskListItem(task, stats, task_card(task, stats)))
        except TrackerError as exc:
            logger.error("list_tasks failed for %d: %s", user_id, exc)
            return _error("Couldn't load your tasks. Please try again later.")

        if not items:
            return NoActionResponse(
                kind=ResponseKind.NO_ACTION,
                message="You have no tasks yet. Chat with your coach to plan one, or /import a shared task.",
            )
        return TaskListResponse(kind=ResponseKind.LIST, message="Your tasks:", items=items)

    async def toggle_task_completion(self, user_id: int, task_id: str) -> ServiceResponse:
        try:
            task = await self._own_task(user_id, task_id)
            if task is None:
                return _not_found("task")
            task = await self._tasks.toggle_completion(task)
        except TrackerError as exc:
            logger.error("toggle_task_completion failed for %s: %s", task_id, exc)
            return _error("Couldn't update the task. Please try again.")
        message = f"🎉 Completed '{task.name}'!" if task.is_completed else f"'{task.name}' reopened."
        return SuccessResponse(kind=ResponseKind.SUCCESS, message=message, task=task)

    async def toggle_task_step(self, user_id: int, task_id: str, step_index: int) -> ServiceResponse:
        """Toggle the step at step_index (0-based, in task order)."""
        try:
            task = await self._own_task(user_id, task_id)
            if task is None:
                return _not_found("task")
            if not 0 <= step_index < len(task.steps):
                return _not_found("step")
            task = await self._tasks.toggle_step(task, task.steps[step_index].id)
            stats = await self._tasks.get_stats(task)
        except TrackerError as exc:
            logger.error("toggle_task_step failed for %s/%d: %s", task_id, step_index, exc)
            return _error("Couldn't update the step. Please try again.")
        return SuccessResponse(
            kind=ResponseKind.SUCCESS, message=task_card(task, stats), task=task,
        )

    async def toggle_task_active(self, user_id: int, task_id: str) -> ServiceResponse:
        try:
            task = await self._own_task(user_id, task_id)
            if task is None:
                return _not_found("task")
            if not task.is_active:
                paywall = await self._paywall_for(user_id, "task")
                if paywall is not None:
                    return paywall
            task = await self._tasks.toggle_active(task)
        except (TrackerError, SubscriptionError) as exc:
            logger.error("toggle_task_active failed for %s: %s", task_id, exc)
            return _error("Couldn't update the task. Please try again.")

        state = "resumed" if task.is_active else "paused"
        return SuccessResponse(
            kind=ResponseKind.SUCCESS, message=f"'{task.name}' {state}.", task=task,
        )

    async def delete_task(self, user_id: int, task_id: str) -> ServiceResponse:
        try:
            task = await self._own_task(user_id, task_id)
            if task is None:
                return _not_found("task")
            await self._tasks.delete(task)
        except TrackerError as exc:
            logger.error("delete_task failed for %s: %s", task_id, exc)
            return _error("Couldn't delete the task. Please try again.")
        return SuccessResponse(kind=ResponseKind.SUCCESS, message=f"🗑 Deleted '{task.name}'.")

    async def share_task(self, user_id: int, task_id: str) -> ServiceResponse:
        try:
            task = await self._own_task(user_id, task_id)
            if task is None:
                return _not_found("task")
            text, link = await self._tasks.share(task)
        except TrackerError as exc:
            logger.error("share_task failed for %s: %s", task_id, exc)
            return _error("Couldn't create a share link. Please try again.")
        return ShareResponse(kind=ResponseKind.SHARE, message=text, link=link)

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    @staticmethod
    def _preview(importer: ImportPort) -> ServiceResponse:
        if importer.importable_habit is None and importer.importable_task is None:
            return _error(importer.import_error or "Nothing to import.")
        return ImportPreviewResponse(
            kind=ResponseKind.IMPORT_PREVIEW,
            message=import_preview_text(importer.importable_habit, importer.importable_task),
            habit=importer.importable_habit,
            task=importer.importable_task,
        )

    async def preview_import(self, importer: ImportPort, text: str) -> ServiceResponse:
        """Parse pasted text or a share link into a pending import."""
        await importer.parse_from_text(text)
        return self._preview(importer)

    async def preview_suggestion(
        self, importer: ImportPort, habit: Habit | None = None, task: Task | None = None,
    ) -> ServiceResponse:
        """Offer a habit / task the coach suggested in chat as a pending import."""
        importer.clear_import()
        importer.importable_habit = habit
        importer.importable_task = task
        return self._preview(importer)

    async def confirm_import(self, user_id: int, importer: ImportPort) -> ServiceResponse:
        """Create the pending habit or task for the user, subject to free-tier limits."""
        habit = importer.importable_habit
        task = importer.importable_task
        if habit is None and task is None:
            return NoActionResponse(
                kind=ResponseKind.NO_ACTION, message="There's nothing waiting to be imported.",
            )

        entity = "habit" if habit is not None else "task"
        try:
            paywall = await self._paywall_for(user_id, entity)
            if paywall is not None:
                return paywall

            if habit is not None:
                habit.user_id = user_id
                habit.is_active = True
                await self._habits.create(habit)
                name = habit.name
            else:
                task.user_id = user_id
                task.is_active = True
                await self._tasks.create(task)
                name = task.name
        except (TrackerError, SubscriptionError) as exc:
            logger.error("confirm_import failed for %d: %s", user_id, exc)
            return _error(f"Couldn't import the {entity}. Please try again.")

        await importer.record_import()
        importer.clear_import()
        logger.info("User %d imported %s '%s'", user_id, entity, name)
        return SuccessResponse(
            kind=ResponseKind.SUCCESS, message=f"📥 Imported {entity} '{name}'.",
            habit=habit, task=task,
        )

    async def discard_import(self, importer: ImportPort) -> ServiceResponse:
        importer.clear_import()
        return NoActionResponse(kind=ResponseKind.NO_ACTION, message="Import discarded.")
