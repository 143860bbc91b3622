"""Tests for stoa.data.models — habit, task and chat dataclasses."""

from stoa.data.models import (
    ChatMessage,
    Habit,
    HabitMood,
    HabitStats,
    ScheduleDescriptor,
    Task,
    TaskStats,
    User,
)


def test_user_defaults():
    user = User(telegram_user_id=12345, display_name="Marcus")
    assert user.signed_in is True
    assert user.tier == "free"
    assert user.notifications_enabled is True


def test_habit_defaults():
    habit = Habit(id="h1", name="Read")
    assert habit.is_active is True
    assert habit.schedule is None
    assert habit.user_id is None


def test_task_steps_not_shared_between_instances():
    first = Task(id="t1", name="A")
    second = Task(id="t2", name="B")
    first.steps.append("x")
    assert second.steps == []


def test_schedule_from_dict():
    descriptor = ScheduleDescriptor.from_dict({
        "span": "every-n-days",
        "span_interval": 3,
        "program": [{"steps": [{"id": "s1", "instructions": "Run", "duration_minutes": 15}]}],
    })
    assert descriptor.span == "every-n-days"
    assert descriptor.span_interval == 3
    assert descriptor.program[0].steps[0].duration_minutes == 15


def test_schedule_from_empty_dict():
    descriptor = ScheduleDescriptor.from_dict({})
    assert descriptor.span == ""
    assert descriptor.program == []


def test_mood_emoji():
    assert HabitMood.EXCELLENT.emoji == "😊"
    assert HabitMood("Difficult") is HabitMood.DIFFICULT


def test_habit_on_track_threshold():
    stats = HabitStats(
        habit_id="h1", total_completions=4, current_streak=1,
        longest_streak=2, completion_rate=0.8,
    )
    assert stats.is_on_track is True
    stats.completion_rate = 0.79
    assert stats.is_on_track is False


def test_task_progress_percentage():
    stats = TaskStats(
        task_id="t1", total_steps=4, completed_steps=1,
        completion_rate=0.25, is_completed=False,
    )
    assert stats.progress_percentage == 25


def test_chat_message_display_text():
    message = ChatMessage(id="m1", text='Hi ```json\n{}\n```', is_user=False, timestamp="")
    assert message.display_text == message.text
    message.cleaned_text = "Hi"
    assert message.display_text == "Hi"
    message.cleaned_text = ""
    assert message.display_text == ""
