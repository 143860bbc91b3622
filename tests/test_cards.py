"""Tests for stoa.core.cards — habit / task text rendering."""

from stoa.core.cards import (
    habit_card,
    habit_share_text,
    habit_stats_text,
    import_preview_text,
    task_card,
    task_share_text,
    with_import_link,
)
from stoa.data.models import HabitStats, TaskStats, TaskStep


class TestHabitCard:
    def test_pending_card(self, make_habit):
        text = habit_card(make_habit())
        assert text.splitlines() == [
            "🏃 Morning run",
            "🎯 Run a 10k",
            "Physical · Daily · 20 minutes",
            "⬜ Not done yet",
        ]

    def test_done_today(self, make_habit):
        assert "✅ Done today" in habit_card(make_habit(), completed_today=True)

    def test_paused_overrides_status(self, make_habit):
        text = habit_card(make_habit(is_active=False), completed_today=True)
        assert "⏸ Paused" in text
        assert "Done today" not in text

    def test_no_status_line(self, make_habit):
        text = habit_card(make_habit(is_active=False), completed_today=None)
        assert "Paused" not in text
        assert "Not done" not in text


class TestTaskCard:
    def test_progress_and_steps(self, make_task):
        task = make_task(deadline="2026-11-01")
        task.steps[0].is_completed = True
        stats = TaskStats(
            task_id="t1", total_steps=2, completed_steps=1,
            completion_rate=0.5, is_completed=False,
        )
        text = task_card(task, stats)
        assert text.startswith("⬜ ✅ Plan the trip")
        assert "📅 Due 2026-11-01" in text
        assert "1/2 steps (50%)" in text
        assert "  ☑ Book flights" in text
        assert "  ☐ Book hotel" in text

    def test_paused_hidden_without_status(self, make_task):
        task = make_task(is_active=False)
        assert "⏸ Paused" in task_card(task)
        assert "⏸ Paused" not in task_card(task, show_status=False)


class TestStatsText:
    def test_full_stats(self, make_habit):
        stats = HabitStats(
            habit_id="h1", total_completions=9, current_streak=3,
            longest_streak=5, completion_rate=0.9,
            last_completed_at="2026-10-18T07:00:00", average_rating=4.25,
        )
        text = habit_stats_text(make_habit(), stats)
        assert "Total check-ins: 9" in text
        assert "Completion rate: 90%" in text
        assert "Average rating: 4.2/5" in text or "Average rating: 4.3/5" in text
        assert "Last check-in: 2026-10-18" in text
        assert text.endswith("On track 💪")

    def test_behind(self, make_habit):
        stats = HabitStats(
            habit_id="h1", total_completions=1, current_streak=0,
            longest_streak=1, completion_rate=0.2,
        )
        text = habit_stats_text(make_habit(), stats)
        assert "Average rating" not in text
        assert text.endswith("Keep going 🌱")


class TestShareText:
    def test_habit_share(self, make_habit):
        text = habit_share_text(make_habit(motivation="Feel strong"))
        assert text.startswith("🔁 Morning run\n\n")
        assert "🎯 Goal: Run a 10k" in text
        assert "🗓 Frequency: Daily" in text
        assert "⏱ Duration: 20 minutes" in text
        assert "💡 Why: Feel strong" in text

    def test_task_share_steps_numbered(self, make_task):
        task = make_task(goal="Relax", description="Autumn break")
        task.steps.append(TaskStep(id="st3", description="Pack", scheduled_date="2026-10-30"))
        text = task_share_text(task)
        assert "🎯 Goal: Relax" in text
        assert "📝 Description: Autumn break" in text
        assert "3. Pack - 2026-10-30" in text

    def test_import_link_appended(self):
        assert with_import_link("Body", "calendo://x") == "Body\n🔗 Import Link:\ncalendo://x"
        assert with_import_link("Body", None) == "Body"


class TestImportPreview:
    def test_habit_preview(self, make_habit):
        text = import_preview_text(habit=make_habit(is_active=False))
        assert text.startswith("Import this habit?\n\n")
        assert "Paused" not in text

    def test_task_preview(self, make_task):
        text = import_preview_text(task=make_task(is_active=False))
        assert text.startswith("Import this task?\n\n")
        assert "Paused" not in text

    def test_nothing(self):
        assert import_preview_text() == ""
