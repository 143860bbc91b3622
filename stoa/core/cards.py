"""Text rendering of habits and tasks — UI-agnostic.

Every function returns plain text; the bot decides how to send it.
"""

from __future__ import annotations

from stoa.core.categories import classify
from stoa.core.schedule import format_duration, interpret_duration, interpret_frequency
from stoa.data.models import Habit, HabitStats, Task, TaskStats


def habit_card(habit: Habit, completed_today: bool | None = False) -> str:
    """One habit as a short card: category, frequency, duration, status.

    completed_today=None leaves the status line out (import previews).
    """
    category = classify(habit.category)
    frequency = interpret_frequency(habit.schedule)
    duration = format_duration(interpret_duration(habit.schedule))

    status = "✅ Done today" if completed_today else "⬜ Not done yet"
    if not habit.is_active:
        status = "⏸ Paused"

    details = [category.display_name, frequency.display_text]
    if duration:
        details.append(duration)

    lines = [f"{category.emoji} {habit.name}", " · ".join(details)]
    if completed_today is not None:
        lines.append(status)
    if habit.goal:
        lines.insert(1, f"🎯 {habit.goal}")
    return "\n".join(lines)


def task_card(
    task: Task, stats: TaskStats | None = None, show_status: bool = True
) -> str:
    category = classify(task.category)
    mark = "✅" if task.is_completed else "⬜"
    lines = [f"{mark} {category.emoji} {task.name}"]
    if task.deadline:
        lines.append(f"📅 Due {task.deadline}")
    if stats is not None and stats.total_steps:
        lines.append(
            f"{stats.completed_steps}/{stats.total_steps} steps "
            f"({stats.progress_percentage:.0f}%)"
        )
    for step in task.steps:
        lines.append(f"  {'☑' if step.is_completed else '☐'} {step.description}")
    if show_status and not task.is_active:
        lines.append("⏸ Paused")
    return "\n".join(lines)


def habit_stats_text(habit: Habit, stats: HabitStats) -> str:
    lines = [
        f"📊 {habit.name}",
        f"Total check-ins: {stats.total_completions}",
        f"Current streak: {stats.current_streak} day(s)",
        f"Longest streak: {stats.longest_streak} day(s)",
        f"Completion rate: {stats.completion_rate * 100:.0f}%",
    ]
    if stats.average_rating is not None:
        lines.append(f"Average rating: {stats.average_rating:.1f}/5")
    if stats.last_completed_at:
        lines.append(f"Last check-in: {stats.last_completed_at[:10]}")
    lines.append("On track 💪" if stats.is_on_track else "Keep going 🌱")
    return "\n".join(lines)


def habit_share_text(habit: Habit) -> str:
    """Human-readable habit summary. See with_import_link() for the link."""
    text = f"🔁 {habit.name}\n\n"
    if habit.goal:
        text += f"🎯 Goal: {habit.goal}\n"
    if habit.category:
        text += f"📂 Category: {habit.category}\n"
    text += f"🗓 Frequency: {interpret_frequency(habit.schedule).display_text}\n"
    duration = format_duration(interpret_duration(habit.schedule))
    if duration:
        text += f"⏱ Duration: {duration}\n"
    if habit.description:
        text += f"📝 Description: {habit.description}\n"
    if habit.motivation:
        text += f"💡 Why: {habit.motivation}\n"
    return text


def task_share_text(task: Task) -> str:
    text = f"✅ {task.name}\n\n"
    if task.goal:
        text += f"🎯 Goal: {task.goal}\n"
    if task.category:
        text += f"📂 Category: {task.category}\n"
    text += f"📝 Description: {task.description}\n"

    if task.steps:
        text += "\n📋 Steps:\n"
        for index, step in enumerate(task.steps, start=1):
            text += f"{index}. {step.description}"
            if step.scheduled_date:
                text += f" - {step.scheduled_date}"
            text += "\n"
    return text


def with_import_link(text: str, link: str | None) -> str:
    if not link:
        return text
    return f"{text}\n🔗 Import Link:\n{link}"


def import_preview_text(habit: Habit | None = None, task: Task | None = None) -> str:
    if habit is not None:
        return "Import this habit?\n\n" + habit_card(habit, completed_today=None)
    if task is not None:
        return "Import this task?\n\n" + task_card(task, show_status=False)
    return ""
