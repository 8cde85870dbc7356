"""
Habit and HabitLog records.

A HabitLog snapshots the habit's title, interval and target at the time
it was opened, so later edits to the habit never rewrite history.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from mindloop.core.errors import ValidationError
from mindloop.domain.validation import parse_choice, require_text

TITLE_MAX_LENGTH = 100
DEFAULT_DESCRIPTION = "Default habit description"
DEFAULT_TARGET_COUNT = 1


class Interval(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"


@dataclass
class Habit:
    title: str
    description: str = DEFAULT_DESCRIPTION
    interval: Interval = Interval.daily
    target_count: int = DEFAULT_TARGET_COUNT
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def new(
        cls,
        title: str,
        description: Optional[str] = None,
        target_count: Optional[int] = None,
        interval: Optional[str] = None,
    ) -> "Habit":
        """Build a validated habit, filling omitted fields with the defaults."""
        habit = cls(
            title=title,
            description=description or DEFAULT_DESCRIPTION,
            interval=interval or Interval.daily,
            target_count=DEFAULT_TARGET_COUNT if target_count is None else target_count,
        )
        habit.validate()
        return habit

    def validate(self) -> None:
        self.title = require_text(self.title, "title", TITLE_MAX_LENGTH)
        if not isinstance(self.target_count, int) or self.target_count <= 0:
            raise ValidationError("target count must be greater than 0", field="target_count")
        self.interval = parse_choice(Interval, self.interval, "interval")


@dataclass
class HabitLog:
    habit_id: int
    title: str
    interval: Interval
    target_count: int
    actual_count: int
    ended_at: datetime
    period_key: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.actual_count >= self.target_count
