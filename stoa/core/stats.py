"""Habit and task statistics — pure business logic.

No I/O: callers pass in the records, this module only transforms data.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from stoa.core.schedule import interpret_frequency
from stoa.data.models import Habit, HabitEntry, HabitStats, Task, TaskStats

logger = logging.getLogger(__name__)


def _entry_day(entry: HabitEntry) -> date:
    return datetime.fromisoformat(entry.completed_at).date()


def _days_since(created_at: str | None, today: date) -> int:
    if not created_at:
        return 0
    try:
        created = datetime.fromisoformat(created_at).date()
    except ValueError:
        logger.warning("Unparseable created_at %r, assuming today", created_at)
        return 0
    return (today - created).days


def calculate_streaks(entries: list[HabitEntry], today: date) -> tuple[int, int]:
    """Return (current_streak, longest_streak) in days.

    The current streak counts back from today: one completion today, one
    yesterday, and so on until the first gap.
    """
    days = sorted({_entry_day(e) for e in entries})
    if not days:
        return 0, 0

    current = 0
    expected = today
    for day in reversed(days):
        if day != expected:
            break
        current += 1
        expected -= timedelta(days=1)

    longest = 1
    run = 1
    for prev, day in zip(days, days[1:]):
        if (day - prev).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    return current, longest


def compute_habit_stats(
    habit: Habit,
    entries: list[HabitEntry],
    today: date | None = None,
) -> HabitStats:
    """Aggregate a habit's check-ins into display statistics."""
    if today is None:
        today = date.today()

    own = [e for e in entries if e.habit_id == habit.id]
    if not own:
        return HabitStats(
            habit_id=habit.id,
            total_completions=0,
            current_streak=0,
            longest_streak=0,
            completion_rate=0.0,
        )

    total = len(own)
    last_completed = max(e.completed_at for e in own)

    frequency = interpret_frequency(habit.schedule)
    days = _days_since(habit.created_at, today)
    expected = max(1, days // frequency.period_days)
    completion_rate = min(1.0, total / expected)

    current, longest = calculate_streaks(own, today)

    ratings = [e.rating for e in own if e.rating is not None]
    average = sum(ratings) / len(ratings) if ratings else None

    return HabitStats(
        habit_id=habit.id,
        total_completions=total,
        current_streak=current,
        longest_streak=longest,
        completion_rate=completion_rate,
        last_completed_at=last_completed,
        average_rating=average,
    )


def compute_task_stats(task: Task) -> TaskStats:
    """Step progress for a task. A task without steps counts as 100%."""
    total = len(task.steps)
    completed = sum(1 for s in task.steps if s.is_completed)
    rate = completed / total if total else 1.0
    return TaskStats(
        task_id=task.id,
        total_steps=total,
        completed_steps=completed,
        completion_rate=rate,
        is_completed=task.is_completed or (total > 0 and completed == total),
        completed_at=task.completed_at,
    )


def is_completed_on(habit: Habit, entries: list[HabitEntry], day: date) -> bool:
    return any(e.habit_id == habit.id and _entry_day(e) == day for e in entries)
