"""
Focus session lifecycle.

    active ──pause──▶ paused ──resume──▶ active
    active ──end────▶ ended (terminal)

A paused session cannot be ended directly; it has to be resumed first.
Pause / resume / end return False instead of raising when the current
state does not allow them, so callers decide whether that is an error.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from mindloop.core.errors import InvalidStateError, ValidationError
from mindloop.domain.period import as_utc, utcnow
from mindloop.domain.validation import require_text

UNRATED = -1
MIN_RATING = 0
MAX_RATING = 10


class FocusStatus(str, enum.Enum):
    active = "active"
    paused = "paused"
    ended = "ended"


@dataclass
class FocusSession:
    title: str
    status: FocusStatus = FocusStatus.active
    end_time: Optional[datetime] = None
    duration_minutes: float = 0.0
    rating: int = UNRATED
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def start(cls, title: str) -> "FocusSession":
        return cls(title=require_text(title, "title"))

    def is_active(self) -> bool:
        return self.status == FocusStatus.active

    def is_paused(self) -> bool:
        return self.status == FocusStatus.paused

    def is_ended(self) -> bool:
        return self.status == FocusStatus.ended

    def pause(self) -> bool:
        if not self.is_active():
            return False
        self.status = FocusStatus.paused
        return True

    def resume(self) -> bool:
        if not self.is_paused():
            return False
        self.status = FocusStatus.active
        return True

    def end(self, now: Optional[datetime] = None) -> bool:
        if not self.is_active():
            return False
        self.status = FocusStatus.ended
        self.end_time = as_utc(now or utcnow())
        self.duration_minutes = self._minutes_since_start(self.end_time)
        return True

    def rate(self, rating: int) -> None:
        if not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(
                f"rating must be between {MIN_RATING} and {MAX_RATING}", field="rating"
            )
        if not self.is_ended():
            raise InvalidStateError(
                "can only rate ended focus sessions",
                details={"id": self.id, "status": self.status.value},
            )
        self.rating = rating

    def current_duration(self, now: Optional[datetime] = None) -> float:
        """Minutes spent so far: stored duration once ended, live elapsed time before."""
        if self.is_ended():
            return self.duration_minutes
        return self._minutes_since_start(as_utc(now or utcnow()))

    def _minutes_since_start(self, until: datetime) -> float:
        if self.created_at is None:
            return 0.0
        return (until - as_utc(self.created_at)).total_seconds() / 60
