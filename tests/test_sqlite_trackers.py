"""Tests for stoa.adapters.sqlite_trackers — SQLite habit / task managers."""

import pytest
from unittest.mock import MagicMock

from stoa.adapters.sqlite_trackers import SQLiteHabitManager, SQLiteTaskManager
from stoa.core.importer import decode_share_link
from stoa.data.models import HabitMood
from stoa.ports.tracker_port import TrackerError


@pytest.fixture
def habits(habit_db):
    return SQLiteHabitManager(habit_db)


@pytest.fixture
def tasks(task_db):
    return SQLiteTaskManager(task_db)


class TestHabitManager:
    @pytest.mark.asyncio
    async def test_create_and_load(self, habits, make_habit):
        await habits.create(make_habit())
        loaded = await habits.load_all(12345)
        assert [h.name for h in loaded] == ["Morning run"]

    @pytest.mark.asyncio
    async def test_record_completion_marks_today(self, habits, make_habit):
        habit = await habits.create(make_habit())
        assert await habits.is_completed_today(habit) is False
        await habits.record_completion(habit, notes="Felt great", rating=5, mood=HabitMood.EXCELLENT)
        assert await habits.is_completed_today(habit) is True

        stats = await habits.get_stats(habit)
        assert stats.total_completions == 1
        assert stats.current_streak == 1
        assert stats.average_rating == 5

    @pytest.mark.asyncio
    async def test_invalid_rating_rejected(self, habits, make_habit):
        habit = await habits.create(make_habit())
        with pytest.raises(TrackerError):
            await habits.record_completion(habit, rating=7)

    @pytest.mark.asyncio
    async def test_toggle_active(self, habits, make_habit):
        habit = await habits.create(make_habit())
        habit = await habits.toggle_active(habit)
        assert habit.is_active is False
        assert (await habits.get("h1")).is_active is False

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self, habits, make_habit):
        with pytest.raises(TrackerError):
            await habits.delete(make_habit("ghost"))

    @pytest.mark.asyncio
    async def test_store_errors_become_tracker_errors(self, make_habit):
        db = MagicMock()
        db.list_habits.side_effect = RuntimeError("disk full")
        with pytest.raises(TrackerError) as exc_info:
            await SQLiteHabitManager(db).load_all(12345)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_share_includes_decodable_link(self, habits, make_habit):
        text, link = await habits.share(make_habit())
        assert "Morning run" in text
        assert link in text
        kind, payload = decode_share_link(link)
        assert kind == "habit"
        assert payload["name"] == "Morning run"


class TestTaskManager:
    @pytest.mark.asyncio
    async def test_toggle_completion(self, tasks, make_task):
        task = await tasks.create(make_task())
        task = await tasks.toggle_completion(task)
        assert task.is_completed is True
        assert task.completed_at is not None
        task = await tasks.toggle_completion(task)
        assert task.is_completed is False
        assert task.completed_at is None

    @pytest.mark.asyncio
    async def test_toggle_step_persists(self, tasks, make_task):
        task = await tasks.create(make_task())
        await tasks.toggle_step(task, "st2")
        loaded = await tasks.get("t1")
        assert [s.is_completed for s in loaded.steps] == [False, True]
        stats = await tasks.get_stats(loaded)
        assert stats.completed_steps == 1

    @pytest.mark.asyncio
    async def test_toggle_unknown_step_raises(self, tasks, make_task):
        task = await tasks.create(make_task())
        with pytest.raises(TrackerError):
            await tasks.toggle_step(task, "nope")

    @pytest.mark.asyncio
    async def test_delete(self, tasks, make_task):
        task = await tasks.create(make_task())
        await tasks.delete(task)
        assert await tasks.get("t1") is None

    @pytest.mark.asyncio
    async def test_share(self, tasks, make_task):
        text, link = await tasks.share(make_task())
        assert "📋 Steps:" in text
        assert "1. Book flights" in text
        assert decode_share_link(link)[0] == "task"
