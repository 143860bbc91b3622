"""
Stoa Assistant — Habit / Task Import.

Turns shared content back into habits and tasks. Three sources:

* pasted text that embeds the entity JSON (after the share marker, inside
  a code fence, or as a bare {...} object);
* client-side import links: calendo://import/<habit|task>?data=<base64>;
* server share links: calendo://share/<habit|task>/<share_id>, fetched
  from the share service.

Imported entities always get a fresh id, no dates, and start inactive —
the user confirms before anything is created.
"""

from __future__ import annotations

import base64
import json
import logging
import re
import uuid
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlencode, urlparse

from pydantic import BaseModel, ValidationError

from stoa.data.models import (
    Habit,
    ScheduleDescriptor,
    ScheduleProgram,
    ScheduleStep,
    Task,
    TaskStep,
)

if TYPE_CHECKING:
    from stoa.adapters.share_api import ShareApiClient

logger = logging.getLogger(__name__)

SHARE_SCHEME = "calendo"
IMPORT_MARKER = "--- Import Data (JSON) ---"

_FENCE_PATTERNS = (
    re.compile(r"```json\s*\n([\s\S]*?)\n```"),
    re.compile(r"```\s*\n([\s\S]*?)\n```"),
)


# ---------------------------------------------------------------------------
# Shared JSON contract
# ---------------------------------------------------------------------------


class StepPayload(BaseModel):
    id: str = ""
    instructions: str = ""
    feedback: str = ""
    time: str | None = None
    day: str | None = None
    duration_minutes: int | None = None
    difficulty: str | None = None


class ProgramPayload(BaseModel):
    steps: list[StepPayload] = []


class SchedulePayload(BaseModel):
    """Low-level schedule as produced by the AI coach.

    JSON example:
    {
        "span": "every-n-days",
        "span_interval": 3,
        "program": [{"steps": [{"id": "s1", "instructions": "Run", "duration_minutes": 20}]}]
    }
    """

    span: str
    span_interval: int | None = None
    span_value: float | None = None
    program: list[ProgramPayload] = []

    def to_descriptor(self) -> ScheduleDescriptor:
        return ScheduleDescriptor(
            span=self.span,
            span_interval=self.span_interval,
            span_value=self.span_value,
            program=[
                ScheduleProgram(steps=[ScheduleStep(**s.model_dump()) for s in p.steps])
                for p in self.program
            ],
        )


class HabitPayload(BaseModel):
    """A shared habit. low_level_schedule is what tells it apart from a task."""

    name: str
    goal: str = ""
    description: str = ""
    category: str | None = None
    motivation: str = ""
    tracking_method: str | None = None
    low_level_schedule: SchedulePayload

    def to_habit(self) -> Habit:
        return Habit(
            id=str(uuid.uuid4()),
            name=self.name,
            goal=self.goal,
            description=self.description,
            category=self.category,
            schedule=self.low_level_schedule.to_descriptor(),
            motivation=self.motivation,
            tracking_method=self.tracking_method,
            created_at=None,
            start_date=None,
            is_active=False,
        )


class TaskStepPayload(BaseModel):
    description: str
    scheduled_date: str | None = None


class TaskPayload(BaseModel):
    name: str
    description: str = ""
    goal: str | None = None
    category: str | None = None
    deadline: str | None = None
    steps: list[TaskStepPayload] = []

    def to_task(self) -> Task:
        return Task(
            id=str(uuid.uuid4()),
            name=self.name,
            description=self.description,
            goal=self.goal,
            category=self.category,
            deadline=self.deadline,
            steps=[
                TaskStep(
                    id=str(uuid.uuid4()),
                    description=s.description,
                    scheduled_date=s.scheduled_date,
                )
                for s in self.steps
            ],
            created_at=None,
            is_active=False,
        )


def parse_habit(data: dict) -> Habit | None:
    try:
        return HabitPayload.model_validate(data).to_habit()
    except ValidationError as exc:
        logger.debug("Not a habit: %s", exc.error_count())
        return None


def parse_task(data: dict) -> Task | None:
    try:
        return TaskPayload.model_validate(data).to_task()
    except ValidationError as exc:
        logger.debug("Not a task: %s", exc.error_count())
        return None


def habit_to_payload(habit: Habit) -> dict:
    """Serialize a habit into the shared JSON contract."""
    schedule = habit.schedule or ScheduleDescriptor(span="daily")
    return HabitPayload(
        name=habit.name,
        goal=habit.goal,
        description=habit.description,
        category=habit.category,
        motivation=habit.motivation,
        tracking_method=habit.tracking_method,
        low_level_schedule=SchedulePayload(
            span=schedule.span,
            span_interval=schedule.span_interval,
            span_value=schedule.span_value,
            program=[
                ProgramPayload(steps=[StepPayload(**vars(s)) for s in p.steps])
                for p in schedule.program
            ],
        ),
    ).model_dump(exclude_none=True)


def task_to_payload(task: Task) -> dict:
    return TaskPayload(
        name=task.name,
        description=task.description,
        goal=task.goal,
        category=task.category,
        deadline=task.deadline,
        steps=[
            TaskStepPayload(description=s.description, scheduled_date=s.scheduled_date)
            for s in task.steps
        ],
    ).model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# JSON extraction from free text
# ---------------------------------------------------------------------------


def _is_json_object(candidate: str) -> bool:
    try:
        return isinstance(json.loads(candidate), dict)
    except ValueError:
        return False


def extract_json_string(text: str) -> str | None:
    """Find an embedded JSON object in text.

    Tried in order: the share marker, a code fence, the outermost braces.
    """
    if IMPORT_MARKER in text:
        candidate = text.split(IMPORT_MARKER, 1)[1].strip()
        if _is_json_object(candidate):
            return candidate

    for pattern in _FENCE_PATTERNS:
        match = pattern.search(text)
        if match:
            candidate = match.group(1).strip()
            if _is_json_object(candidate):
                return candidate

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and start < end:
        candidate = text[start:end + 1]
        if _is_json_object(candidate):
            return candidate

    return None


def strip_suggestion_json(text: str) -> str:
    """Drop a trailing suggestion JSON block from an AI reply for display."""
    fence = text.find("```")
    if fence != -1:
        return text[:fence].strip()
    brace = text.find("{")
    if brace != -1 and '"name":' in text:
        return text[:brace].strip()
    return text.strip()


# ---------------------------------------------------------------------------
# Share links
# ---------------------------------------------------------------------------


def build_share_link(kind: str, payload: dict) -> str:
    """Encode an entity as a client-side import link (URL-safe base64, unpadded)."""
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    data = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    return f"{SHARE_SCHEME}://import/{kind}?{urlencode({'data': data})}"


def decode_share_link(url: str) -> tuple[str, dict] | None:
    """Decode a client-side import link into (kind, payload), or None."""
    parsed = urlparse(url)
    if parsed.scheme != SHARE_SCHEME or parsed.netloc != "import":
        return None

    kind = parsed.path.strip("/")
    if kind not in ("habit", "task"):
        return None

    values = parse_qs(parsed.query).get("data")
    if not values:
        return None

    encoded = values[0]
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(padded))
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    return kind, payload


# ---------------------------------------------------------------------------
# ImportService
# ---------------------------------------------------------------------------


class ImportService:
    """Holds the one pending import for a user session.

    Implements ImportPort.
    """

    def __init__(self, share_client: ShareApiClient | None = None) -> None:
        self._share_client = share_client
        self.importable_habit: Habit | None = None
        self.importable_task: Task | None = None
        self.import_error: str | None = None
        self._share_ref: tuple[str, str] | None = None

    def clear_import(self) -> None:
        self.importable_habit = None
        self.importable_task = None
        self.import_error = None
        self._share_ref = None

    def _reset(self) -> None:
        self.importable_habit = None
        self.importable_task = None
        self.import_error = None

    def _accept(self, kind: str, data: dict, source: str) -> bool:
        if kind == "habit":
            self.importable_habit = parse_habit(data)
            if self.importable_habit is None:
                self.import_error = f"Could not parse habit from {source}."
                return False
            return True
        if kind == "task":
            self.importable_task = parse_task(data)
            if self.importable_task is None:
                self.import_error = f"Could not parse task from {source}."
                return False
            return True
        self.import_error = f"Unknown item type: {kind}"
        return False

    async def parse_from_url(self, url: str) -> bool:
        """Load a habit or task from a share link."""
        self._reset()
        parsed = urlparse(url.strip())

        if parsed.scheme == SHARE_SCHEME and parsed.netloc == "share":
            parts = [p for p in parsed.path.split("/") if p]
            if len(parts) < 2:
                self.import_error = "Invalid share link format."
                return False
            if self._share_client is None:
                self.import_error = "Shared links are not available right now."
                return False

            kind, share_id = parts[0], parts[1]
            from stoa.adapters.share_api import ShareServiceError

            try:
                response = await self._share_client.get_shared_item(kind, share_id)
            except ShareServiceError as exc:
                logger.error("Share fetch failed for %s/%s: %s", kind, share_id, exc)
                self.import_error = "Failed to fetch shared item. Please try again later."
                return False

            item_type = response.get("type")
            item_data = response.get("itemData")
            if not isinstance(item_type, str) or not isinstance(item_data, dict):
                self.import_error = "Invalid response from server."
                return False

            if not self._accept(item_type, item_data, "server"):
                return False
            self._share_ref = (kind, share_id)
            logger.info("Loaded shared %s %s", item_type, share_id)
            return True

        decoded = decode_share_link(url.strip())
        if decoded is None:
            self.import_error = "Invalid share link format."
            return False
        kind, payload = decoded
        return self._accept(kind, payload, "link")

    async def parse_from_text(self, text: str) -> bool:
        """Load a habit or task from pasted text (link or embedded JSON)."""
        self._reset()

        stripped = text.strip()
        if stripped.startswith(f"{SHARE_SCHEME}://") and " " not in stripped:
            return await self.parse_from_url(stripped)

        json_string = extract_json_string(text)
        if json_string is None:
            self.import_error = (
                "No importable data found. Please share a habit or task from the app."
            )
            return False

        data = json.loads(json_string)

        habit = parse_habit(data)
        if habit is not None:
            self.importable_habit = habit
            return True

        task = parse_task(data)
        if task is not None:
            self.importable_task = task
            return True

        self.import_error = "Could not recognize habit or task format."
        return False

    async def record_import(self) -> None:
        """Tell the share service an item was imported. Never fails the import."""
        if self._share_ref is None or self._share_client is None:
            return
        kind, share_id = self._share_ref
        from stoa.adapters.share_api import ShareServiceError

        try:
            await self._share_client.record_import(kind, share_id)
            logger.info("Recorded import for %s: %s", kind, share_id)
        except ShareServiceError as exc:
            logger.warning("Failed to record import for %s/%s: %s", kind, share_id, exc)
