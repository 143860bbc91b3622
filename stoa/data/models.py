"""
Stoa Assistant — Data Models.

Habits, tasks and check-ins are owned by the habit / task managers; these
dataclasses are what the presentation layer reads. Habit and task records
keep their category as free text and their schedule as the loosely
structured descriptor produced by the AI coach. Display values are derived
from them in stoa.core, never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass
class User:
    """A Telegram user known to the bot."""

    telegram_user_id: int
    display_name: str
    signed_in: bool = True
    tier: str = "free"                 # "free" | "premium"
    notifications_enabled: bool = True
    created_at: str = ""


# ---------------------------------------------------------------------------
# Schedule descriptor
# ---------------------------------------------------------------------------


@dataclass
class ScheduleStep:
    """One step of a schedule program (e.g. "Meditate for 10 minutes")."""

    id: str = ""
    instructions: str = ""
    feedback: str = ""
    time: str | None = None           # HH:MM for daily steps
    day: str | None = None            # weekday name for weekly steps
    duration_minutes: int | None = None
    difficulty: str | None = None     # "easy" | "medium" | "hard" | "expert"


@dataclass
class ScheduleProgram:
    steps: list[ScheduleStep] = field(default_factory=list)


@dataclass
class ScheduleDescriptor:
    """Recurrence descriptor attached to a habit.

    span is one of "daily", "weekly", "every-n-days", or the legacy
    "day" / "week" forms which carry their multiplier in span_value.
    """

    span: str
    span_interval: int | None = None
    span_value: float | None = None
    program: list[ScheduleProgram] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> ScheduleDescriptor:
        """Rebuild a descriptor from its stored JSON form."""
        programs = [
            ScheduleProgram(steps=[ScheduleStep(**step) for step in p.get("steps", [])])
            for p in data.get("program", [])
        ]
        return cls(
            span=data.get("span", ""),
            span_interval=data.get("span_interval"),
            span_value=data.get("span_value"),
            program=programs,
        )


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------


@dataclass
class Habit:
    """A habit the user is building."""

    id: str
    name: str
    description: str = ""
    goal: str = ""
    category: str | None = None       # free text, e.g. "fitness"
    schedule: ScheduleDescriptor | None = None
    motivation: str = ""
    tracking_method: str | None = None
    created_at: str | None = None     # ISO datetime
    start_date: str | None = None     # ISO date
    is_active: bool = True
    user_id: int | None = None


class HabitMood(Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    NEUTRAL = "Neutral"
    CHALLENGING = "Challenging"
    DIFFICULT = "Difficult"

    @property
    def emoji(self) -> str:
        return _MOOD_EMOJI[self]


_MOOD_EMOJI = {
    HabitMood.EXCELLENT: "😊",
    HabitMood.GOOD: "🙂",
    HabitMood.NEUTRAL: "😐",
    HabitMood.CHALLENGING: "😕",
    HabitMood.DIFFICULT: "😔",
}


@dataclass
class HabitEntry:
    """A single check-in for a habit."""

    id: str
    habit_id: str
    completed_at: str                 # ISO datetime
    notes: str | None = None
    rating: int | None = None         # 1-5
    reflection: str | None = None
    mood: HabitMood | None = None
    user_id: int | None = None


@dataclass
class HabitStats:
    habit_id: str
    total_completions: int
    current_streak: int
    longest_streak: int
    completion_rate: float            # 0.0 - 1.0
    last_completed_at: str | None = None
    average_rating: float | None = None

    @property
    def is_on_track(self) -> bool:
        return self.completion_rate >= 0.8


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@dataclass
class TaskStep:
    id: str
    description: str
    is_completed: bool = False
    scheduled_date: str | None = None  # ISO date


@dataclass
class Task:
    """A one-time or multi-step task."""

    id: str
    name: str
    description: str = ""
    goal: str | None = None
    category: str | None = None
    steps: list[TaskStep] = field(default_factory=list)
    created_at: str | None = None
    completed_at: str | None = None
    is_completed: bool = False
    is_active: bool = True
    deadline: str | None = None       # ISO date
    user_id: int | None = None


@dataclass
class TaskStats:
    task_id: str
    total_steps: int
    completed_steps: int
    completion_rate: float
    is_completed: bool
    completed_at: str | None = None

    @property
    def progress_percentage(self) -> float:
        return self.completion_rate * 100


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@dataclass
class ChatMessage:
    """A chat message between the user and the AI coach.

    text holds the full reply (including any suggestion JSON) so history
    can be replayed; cleaned_text is what gets displayed.
    """

    id: str
    text: str
    is_user: bool
    timestamp: str
    cleaned_text: str | None = None
    suggested_habit: Habit | None = None
    suggested_task: Task | None = None

    @property
    def display_text(self) -> str:
        return self.cleaned_text if self.cleaned_text is not None else self.text
