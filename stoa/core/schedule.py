"""Display frequency — pure interpretation of schedule descriptors.

Schedules arrive in two shapes: the current one ("daily", "weekly",
"every-n-days" + span_interval) and the legacy one ("day" / "week" with a
numeric span_value multiplier). Both collapse to Daily, Weekly or
Custom(every N days) for display.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stoa.data.models import ScheduleDescriptor

logger = logging.getLogger(__name__)


class FrequencyKind(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


@dataclass(frozen=True)
class DisplayFrequency:
    """How often a habit recurs, as shown to the user.

    interval is only meaningful for CUSTOM (every `interval` days).
    """

    kind: FrequencyKind
    interval: int | None = None

    @classmethod
    def daily(cls) -> DisplayFrequency:
        return cls(FrequencyKind.DAILY)

    @classmethod
    def weekly(cls) -> DisplayFrequency:
        return cls(FrequencyKind.WEEKLY)

    @classmethod
    def custom(cls, interval: int) -> DisplayFrequency:
        return cls(FrequencyKind.CUSTOM, interval)

    @property
    def display_text(self) -> str:
        if self.kind is FrequencyKind.WEEKLY:
            return "Weekly"
        if self.kind is FrequencyKind.CUSTOM:
            return f"Every {self.interval} days"
        return "Daily"

    @property
    def period_days(self) -> int:
        """Number of days one occurrence spans (used for expected completions)."""
        if self.kind is FrequencyKind.WEEKLY:
            return 7
        if self.kind is FrequencyKind.CUSTOM:
            return max(1, self.interval or 1)
        return 1


def interpret_frequency(schedule: ScheduleDescriptor | None) -> DisplayFrequency:
    """Derive the display frequency from a schedule descriptor.

    Unknown spans silently fall back to Daily. This can hide malformed
    upstream data, so the fallback is logged at debug level.
    """
    if schedule is None:
        return DisplayFrequency.daily()

    span = schedule.span

    if span == "daily":
        return DisplayFrequency.daily()
    if span == "weekly":
        return DisplayFrequency.weekly()
    if span == "every-n-days":
        if schedule.span_interval is not None:
            return DisplayFrequency.custom(int(schedule.span_interval))
        return DisplayFrequency.daily()

    # Legacy descriptors
    if span == "day":
        value = schedule.span_value if schedule.span_value is not None else 1.0
        if value == 1:
            return DisplayFrequency.daily()
        return DisplayFrequency.custom(math.floor(value))
    if span == "week":
        return DisplayFrequency.weekly()

    logger.debug("Unrecognized schedule span %r, defaulting to Daily", span)
    return DisplayFrequency.daily()


def interpret_duration(schedule: ScheduleDescriptor | None) -> int | None:
    """Return the first step's duration in minutes, if any.

    Only the first step of the first program is consulted — it describes
    today's session, not the whole schedule.
    """
    if schedule is None or not schedule.program:
        return None
    steps = schedule.program[0].steps
    if not steps:
        return None
    return steps[0].duration_minutes


def format_duration(minutes: int | None) -> str | None:
    if minutes is None:
        return None
    return f"{minutes} minutes"
