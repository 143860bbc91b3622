"""Shared test fixtures and configuration.

Sets up fake environment variables so stoa.config doesn't sys.exit(),
and provides common fixtures like temp DBs and sample records.
"""

import os

# Patch env vars BEFORE any stoa imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("LLM_API_KEY", "fake-llm-key-for-tests")
os.environ.setdefault("LLM_PROVIDER", "gemini")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("SHARE_API_URL", "")

import pytest

from stoa.data.models import (
    Habit,
    ScheduleDescriptor,
    ScheduleProgram,
    ScheduleStep,
    Task,
    TaskStep,
)


@pytest.fixture
def user_db(tmp_path):
    """Return a UserDB instance backed by a temp file."""
    from stoa.data.db import UserDB
    return UserDB(db_path=str(tmp_path / "test_users.db"))


@pytest.fixture
def habit_db(tmp_path):
    """Return a HabitDB instance backed by a temp file."""
    from stoa.data.db import HabitDB
    return HabitDB(db_path=str(tmp_path / "test_habits.db"))


@pytest.fixture
def task_db(tmp_path):
    """Return a TaskDB instance backed by a temp file."""
    from stoa.data.db import TaskDB
    return TaskDB(db_path=str(tmp_path / "test_tasks.db"))


@pytest.fixture
def make_habit():
    def _make(habit_id="h1", user_id=12345, **kwargs):
        kwargs.setdefault("name", "Morning run")
        kwargs.setdefault("goal", "Run a 10k")
        kwargs.setdefault("category", "fitness")
        kwargs.setdefault(
            "schedule",
            ScheduleDescriptor(
                span="daily",
                program=[ScheduleProgram(steps=[
                    ScheduleStep(id="s1", instructions="Run", duration_minutes=20),
                ])],
            ),
        )
        return Habit(id=habit_id, user_id=user_id, **kwargs)
    return _make


@pytest.fixture
def make_task():
    def _make(task_id="t1", user_id=12345, **kwargs):
        kwargs.setdefault("name", "Plan the trip")
        kwargs.setdefault("category", "productivity")
        kwargs.setdefault("steps", [
            TaskStep(id="st1", description="Book flights"),
            TaskStep(id="st2", description="Book hotel"),
        ])
        return Task(id=task_id, user_id=user_id, **kwargs)
    return _make
