"""
Stoa Assistant — SQLite storage.

Users, habits, habit check-ins and tasks persist in SQLite across bot
restarts. Schedules and task steps are stored as JSON columns: they are
loosely structured and only ever read back whole.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path

from stoa.data.models import (
    Habit,
    HabitEntry,
    HabitMood,
    ScheduleDescriptor,
    Task,
    TaskStep,
    User,
)

logger = logging.getLogger(__name__)


class _SQLiteStore:
    """Connection handling shared by every table wrapper."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from stoa.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        raise NotImplementedError


class UserDB(_SQLiteStore):
    """SQLite-backed storage for bot users and their account state."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    telegram_user_id      INTEGER PRIMARY KEY,
                    display_name          TEXT    NOT NULL,
                    signed_in             INTEGER NOT NULL DEFAULT 1,
                    tier                  TEXT    NOT NULL DEFAULT 'free',
                    notifications_enabled INTEGER NOT NULL DEFAULT 1,
                    created_at            TEXT    NOT NULL
                )
            """)
        logger.debug("Users table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            telegram_user_id=row["telegram_user_id"],
            display_name=row["display_name"],
            signed_in=bool(row["signed_in"]),
            tier=row["tier"],
            notifications_enabled=bool(row["notifications_enabled"]),
            created_at=row["created_at"],
        )

    def add_user(self, telegram_user_id: int, display_name: str) -> User:
        """Register a user, or sign an existing one back in."""
        existing = self.get_user(telegram_user_id)
        if existing is not None:
            with self._connect() as conn:
                conn.execute(
                    "UPDATE users SET signed_in = 1, display_name = ? WHERE telegram_user_id = ?",
                    (display_name, telegram_user_id),
                )
            existing.signed_in = True
            existing.display_name = display_name
            return existing

        now = datetime.now().isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (telegram_user_id, display_name, signed_in, tier,
                                   notifications_enabled, created_at)
                VALUES (?, ?, 1, 'free', 1, ?)
                """,
                (telegram_user_id, display_name, now),
            )
        logger.info("User registered: %d (%s)", telegram_user_id, display_name)
        return User(
            telegram_user_id=telegram_user_id,
            display_name=display_name,
            created_at=now,
        )

    def get_user(self, telegram_user_id: int) -> User | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE telegram_user_id = ?", (telegram_user_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def set_signed_in(self, telegram_user_id: int, signed_in: bool) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE users SET signed_in = ? WHERE telegram_user_id = ?",
                (int(signed_in), telegram_user_id),
            )

    def set_tier(self, telegram_user_id: int, tier: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE users SET tier = ? WHERE telegram_user_id = ?",
                (tier, telegram_user_id),
            )
        logger.info("User %d tier set to %s", telegram_user_id, tier)

    def set_notifications(self, telegram_user_id: int, enabled: bool) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE users SET notifications_enabled = ? WHERE telegram_user_id = ?",
                (int(enabled), telegram_user_id),
            )

    def list_users(self) -> list[User]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY created_at").fetchall()
        return [self._row_to_user(r) for r in rows]

    def delete_user(self, telegram_user_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM users WHERE telegram_user_id = ?", (telegram_user_id,)
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("User %d deleted", telegram_user_id)
        return deleted


class HabitDB(_SQLiteStore):
    """SQLite-backed storage for habits and their check-ins."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS habits (
                    id              TEXT    PRIMARY KEY,
                    user_id         INTEGER,
                    name            TEXT    NOT NULL,
                    goal            TEXT    NOT NULL DEFAULT '',
                    description     TEXT    NOT NULL DEFAULT '',
                    category        TEXT,
                    schedule_json   TEXT,
                    motivation      TEXT    NOT NULL DEFAULT '',
                    tracking_method TEXT,
                    created_at      TEXT,
                    start_date      TEXT,
                    is_active       INTEGER NOT NULL DEFAULT 1
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS habit_entries (
                    id           TEXT    PRIMARY KEY,
                    habit_id     TEXT    NOT NULL,
                    user_id      INTEGER,
                    completed_at TEXT    NOT NULL,
                    notes        TEXT,
                    rating       INTEGER,
                    reflection   TEXT,
                    mood         TEXT
                )
            """)
        logger.debug("Habit tables initialized at %s", self._db_path)

    @staticmethod
    def _row_to_habit(row: sqlite3.Row) -> Habit:
        schedule = None
        if row["schedule_json"]:
            schedule = ScheduleDescriptor.from_dict(json.loads(row["schedule_json"]))
        return Habit(
            id=row["id"],
            name=row["name"],
            goal=row["goal"],
            description=row["description"],
            category=row["category"],
            schedule=schedule,
            motivation=row["motivation"],
            tracking_method=row["tracking_method"],
            created_at=row["created_at"],
            start_date=row["start_date"],
            is_active=bool(row["is_active"]),
            user_id=row["user_id"],
        )

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> HabitEntry:
        return HabitEntry(
            id=row["id"],
            habit_id=row["habit_id"],
            completed_at=row["completed_at"],
            notes=row["notes"],
            rating=row["rating"],
            reflection=row["reflection"],
            mood=HabitMood(row["mood"]) if row["mood"] else None,
            user_id=row["user_id"],
        )

    @staticmethod
    def _schedule_json(habit: Habit) -> str | None:
        return json.dumps(asdict(habit.schedule)) if habit.schedule else None

    def add_habit(self, habit: Habit) -> Habit:
        """Insert a habit. created_at / start_date default to now / today."""
        if not habit.created_at:
            habit.created_at = datetime.now().isoformat()
        if not habit.start_date:
            habit.start_date = date.today().isoformat()

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO habits
                    (id, user_id, name, goal, description, category, schedule_json,
                     motivation, tracking_method, created_at, start_date, is_active)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    habit.id, habit.user_id, habit.name, habit.goal, habit.description,
                    habit.category, self._schedule_json(habit), habit.motivation,
                    habit.tracking_method, habit.created_at, habit.start_date,
                    int(habit.is_active),
                ),
            )
        logger.info("Habit added: %s '%s'", habit.id, habit.name)
        return habit

    def update_habit(self, habit: Habit) -> Habit:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE habits SET name = ?, goal = ?, description = ?, category = ?,
                    schedule_json = ?, motivation = ?, tracking_method = ?,
                    start_date = ?, is_active = ?
                WHERE id = ?
                """,
                (
                    habit.name, habit.goal, habit.description, habit.category,
                    self._schedule_json(habit), habit.motivation, habit.tracking_method,
                    habit.start_date, int(habit.is_active), habit.id,
                ),
            )
        if cursor.rowcount == 0:
            raise ValueError(f"Habit {habit.id} not found")
        return habit

    def get_habit(self, habit_id: str) -> Habit | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM habits WHERE id = ?", (habit_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_habit(row)

    def list_habits(self, user_id: int, active_only: bool = False) -> list[Habit]:
        query = "SELECT * FROM habits WHERE user_id = ?"
        if active_only:
            query += " AND is_active = 1"
        query += " ORDER BY created_at"
        with self._connect() as conn:
            rows = conn.execute(query, (user_id,)).fetchall()
        return [self._row_to_habit(r) for r in rows]

    def delete_habit(self, habit_id: str) -> bool:
        """Delete a habit together with its check-ins."""
        with self._connect() as conn:
            conn.execute("DELETE FROM habit_entries WHERE habit_id = ?", (habit_id,))
            cursor = conn.execute("DELETE FROM habits WHERE id = ?", (habit_id,))
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Habit %s deleted", habit_id)
        return deleted

    def add_entry(self, entry: HabitEntry) -> HabitEntry:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO habit_entries
                    (id, habit_id, user_id, completed_at, notes, rating, reflection, mood)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id, entry.habit_id, entry.user_id, entry.completed_at,
                    entry.notes, entry.rating, entry.reflection,
                    entry.mood.value if entry.mood else None,
                ),
            )
        logger.info("Check-in recorded for habit %s", entry.habit_id)
        return entry

    def list_entries(self, habit_id: str) -> list[HabitEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM habit_entries WHERE habit_id = ? ORDER BY completed_at",
                (habit_id,),
            ).fetchall()
        return [self._row_to_entry(r) for r in rows]

    def delete_user_data(self, user_id: int) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM habit_entries WHERE user_id = ?", (user_id,))
            conn.execute("DELETE FROM habits WHERE user_id = ?", (user_id,))
        logger.info("Habit data deleted for user %d", user_id)


class TaskDB(_SQLiteStore):
    """SQLite-backed storage for tasks."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id           TEXT    PRIMARY KEY,
                    user_id      INTEGER,
                    name         TEXT    NOT NULL,
                    description  TEXT    NOT NULL DEFAULT '',
                    goal         TEXT,
                    category     TEXT,
                    steps_json   TEXT    NOT NULL DEFAULT '[]',
                    created_at   TEXT,
                    completed_at TEXT,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    is_active    INTEGER NOT NULL DEFAULT 1,
                    deadline     TEXT
                )
            """)
        logger.debug("Tasks table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        steps = [TaskStep(**s) for s in json.loads(row["steps_json"] or "[]")]
        return Task(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            goal=row["goal"],
            category=row["category"],
            steps=steps,
            created_at=row["created_at"],
            completed_at=row["completed_at"],
            is_completed=bool(row["is_completed"]),
            is_active=bool(row["is_active"]),
            deadline=row["deadline"],
            user_id=row["user_id"],
        )

    @staticmethod
    def _steps_json(task: Task) -> str:
        return json.dumps([asdict(s) for s in task.steps])

    def add_task(self, task: Task) -> Task:
        if not task.created_at:
            task.created_at = datetime.now().isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tasks
                    (id, user_id, name, description, goal, category, steps_json,
                     created_at, completed_at, is_completed, is_active, deadline)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id, task.user_id, task.name, task.description, task.goal,
                    task.category, self._steps_json(task), task.created_at,
                    task.completed_at, int(task.is_completed), int(task.is_active),
                    task.deadline,
                ),
            )
        logger.info("Task added: %s '%s'", task.id, task.name)
        return task

    def update_task(self, task: Task) -> Task:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE tasks SET name = ?, description = ?, goal = ?, category = ?,
                    steps_json = ?, completed_at = ?, is_completed = ?, is_active = ?,
                    deadline = ?
                WHERE id = ?
                """,
                (
                    task.name, task.description, task.goal, task.category,
                    self._steps_json(task), task.completed_at, int(task.is_completed),
                    int(task.is_active), task.deadline, task.id,
                ),
            )
        if cursor.rowcount == 0:
            raise ValueError(f"Task {task.id} not found")
        return task

    def get_task(self, task_id: str) -> Task | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    def list_tasks(self, user_id: int, active_only: bool = False) -> list[Task]:
        query = "SELECT * FROM tasks WHERE user_id = ?"
        if active_only:
            query += " AND is_active = 1"
        query += " ORDER BY created_at"
        with self._connect() as conn:
            rows = conn.execute(query, (user_id,)).fetchall()
        return [self._row_to_task(r) for r in rows]

    def delete_task(self, task_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Task %s deleted", task_id)
        return deleted

    def delete_user_data(self, user_id: int) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM tasks WHERE user_id = ?", (user_id,))
        logger.info("Task data deleted for user %d", user_id)
