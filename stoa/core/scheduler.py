"""
Stoa Assistant — Daily Reminders.

A proactive daily push at REMINDER_HOUR (TIMEZONE): each signed-in user who
allows reminders gets the active habits they haven't checked in today and
their open tasks.

This module is provider-agnostic: it depends on the manager and
NotificationPort protocols, not on specific implementations.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from stoa.core.categories import classify

if TYPE_CHECKING:
    from stoa.data.db import UserDB
    from stoa.ports.notification_port import NotificationPort
    from stoa.ports.tracker_port import HabitManagerPort, TaskManagerPort

logger = logging.getLogger(__name__)


async def send_daily_reminders(
    notifier: NotificationPort,
    user_db: UserDB,
    habits: HabitManagerPort,
    tasks: TaskManagerPort,
) -> int:
    """Send today's reminder to every eligible user. Returns how many were sent.

    A failure for one user is logged and does not stop the others.
    """
    sent = 0
    for user in user_db.list_users():
        if not user.signed_in:
            continue
        try:
            if not await notifier.check_status(user.telegram_user_id):
                continue
            text = await build_reminder(user.telegram_user_id, habits, tasks)
            if text is None:
                continue
            await notifier.send_message(user.telegram_user_id, text)
            sent += 1
            logger.info("Daily reminder sent to user %d", user.telegram_user_id)
        except Exception as exc:
            logger.error(
                "Failed to send daily reminder to %d: %s", user.telegram_user_id, exc,
            )
    return sent


async def build_reminder(
    user_id: int,
    habits: HabitManagerPort,
    tasks: TaskManagerPort,
) -> str | None:
    """Reminder text for one user, or None when there is nothing left to do today."""
    pending_habits = []
    for habit in await habits.load_all(user_id):
        if habit.is_active and not await habits.is_completed_today(habit):
            pending_habits.append(habit)

    open_tasks = [
        t for t in await tasks.load_all(user_id)
        if t.is_active and not t.is_completed
    ]

    if not pending_habits and not open_tasks:
        return None

    lines = ["Good morning! ☀️"]
    if pending_habits:
        lines.append("\nHabits for today:")
        lines.extend(f"  {classify(h.category).emoji} {h.name}" for h in pending_habits)
    if open_tasks:
        lines.append("\nOpen tasks:")
        for task in open_tasks:
            line = f"  ⬜ {task.name}"
            if task.deadline:
                line += f" (due {task.deadline})"
            lines.append(line)
    lines.append("\nUse /checkin when you're done.")
    return "\n".join(lines)
