"""Tests for stoa.core.scheduler — daily reminder push."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from stoa.adapters.sqlite_trackers import SQLiteHabitManager, SQLiteTaskManager
from stoa.core.scheduler import build_reminder, send_daily_reminders


@pytest.fixture
def managers(habit_db, task_db):
    return SQLiteHabitManager(habit_db), SQLiteTaskManager(task_db)


def _notifier(allowed=True):
    notifier = MagicMock()
    notifier.check_status = AsyncMock(return_value=allowed)
    notifier.send_message = AsyncMock()
    return notifier


class TestBuildReminder:
    @pytest.mark.asyncio
    async def test_nothing_to_do(self, managers):
        habits, tasks = managers
        assert await build_reminder(12345, habits, tasks) is None

    @pytest.mark.asyncio
    async def test_lists_pending_items(self, managers, make_habit, make_task):
        habits, tasks = managers
        await habits.create(make_habit())
        await habits.create(make_habit("h2", name="Stretch", is_active=False))
        await tasks.create(make_task(deadline="2026-11-01"))
        await tasks.create(make_task("t2", name="Done already", is_completed=True))

        text = await build_reminder(12345, habits, tasks)

        assert text.startswith("Good morning! ☀️")
        assert "🏃 Morning run" in text
        assert "Stretch" not in text
        assert "⬜ Plan the trip (due 2026-11-01)" in text
        assert "Done already" not in text
        assert text.endswith("Use /checkin when you're done.")

    @pytest.mark.asyncio
    async def test_checked_in_habit_dropped(self, managers, make_habit):
        habits, tasks = managers
        habit = await habits.create(make_habit())
        await habits.record_completion(habit)
        assert await build_reminder(12345, habits, tasks) is None


class TestSendDailyReminders:
    @pytest.mark.asyncio
    async def test_sends_to_eligible_users(self, user_db, managers, make_habit):
        habits, tasks = managers
        user_db.add_user(12345, "Marcus")
        user_db.add_user(222, "Seneca")
        user_db.set_signed_in(222, False)
        await habits.create(make_habit())
        await habits.create(make_habit("h2", user_id=222))
        notifier = _notifier()

        sent = await send_daily_reminders(notifier, user_db, habits, tasks)

        assert sent == 1
        notifier.send_message.assert_awaited_once()
        assert notifier.send_message.call_args.args[0] == 12345

    @pytest.mark.asyncio
    async def test_respects_notification_status(self, user_db, managers, make_habit):
        habits, tasks = managers
        user_db.add_user(12345, "Marcus")
        await habits.create(make_habit())
        notifier = _notifier(allowed=False)

        assert await send_daily_reminders(notifier, user_db, habits, tasks) == 0
        notifier.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_others(self, user_db, managers, make_habit):
        habits, tasks = managers
        user_db.add_user(111, "First")
        user_db.add_user(222, "Second")
        await habits.create(make_habit("h1", user_id=111))
        await habits.create(make_habit("h2", user_id=222))
        notifier = _notifier()
        notifier.send_message.side_effect = [RuntimeError("blocked"), None]

        sent = await send_daily_reminders(notifier, user_db, habits, tasks)

        assert sent == 1
        assert notifier.send_message.await_count == 2
