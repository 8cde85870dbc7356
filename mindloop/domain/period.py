"""
Period keys — which daily or weekly bucket "now" falls into.

This is the single definition used by both logging and unlogging:

  daily   key "YYYY-MM-DD", start = end = midnight of the day
  weekly  key "YYYY-Www" (ISO week), start = Monday 00:00, end = start + 6 days

`end` doubles as the `ended_at` marker written on the period's HabitLog.
All values are UTC.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from mindloop.core.errors import IntervalInvariantError
from mindloop.domain.habit import Interval


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class Period:
    key: str
    start: datetime
    end: datetime


def period_for(interval, now: Optional[datetime] = None) -> Period:
    now = as_utc(now or utcnow())
    midnight = start_of_day(now)

    if interval == Interval.daily:
        return Period(key=midnight.date().isoformat(), start=midnight, end=midnight)

    if interval == Interval.weekly:
        week_start = midnight - timedelta(days=now.weekday())
        iso_year, iso_week, _ = now.isocalendar()
        return Period(
            key=f"{iso_year}-W{iso_week:02d}",
            start=week_start,
            end=week_start + timedelta(days=6),
        )

    raise IntervalInvariantError(interval)
