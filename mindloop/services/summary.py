"""
Summary service — time-bounded productivity report.

Report for a window [start, end] (both inclusive, on created_at)
----------------------------------------------------------------
  focus    count, total and longest duration of the sessions started in
           the window; unfinished sessions count their elapsed time.
  habits   for every habit: completed / tracked logs in the window × 100.
           Habits without logs in the window are left out.
  intents  (name, status) of every intent started in the window.

Any storage failure aborts the whole report (StorageError), there are
no partial summaries.

Public API
----------
build_summary(focus_repo, habit_repo, log_repo, intent_repo, start, end, now) -> SummaryReport
generate_summary(db, start, end, now)      -> SummaryReport
summary_for(db, period, now)               -> SummaryReport   (daily/weekly/monthly/yearly)
custom_summary(db, start_date, end_date)   -> SummaryReport
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

from sqlalchemy.orm import Session

from mindloop.core.errors import ValidationError
from mindloop.core.log import get_logger
from mindloop.domain.period import as_utc, start_of_day, utcnow
from mindloop.repositories import (
    FocusSessionRepository,
    HabitLogRepository,
    HabitRepository,
    IntentRepository,
)

logger = get_logger(__name__)

DATE_LABEL_FORMAT = "%d-%b-%Y"


# ---------------------------------------------------------------------------
# Result types (plain dataclasses, no ORM or Pydantic)
# ---------------------------------------------------------------------------

@dataclass
class FocusStats:
    total_sessions: int = 0
    total_duration: str = "0min"
    longest_session: str = "0min"
    # Raw values behind the formatted strings
    total_minutes: float = 0.0
    longest_minutes: float = 0.0


@dataclass
class HabitStats:
    habit_id: int
    habit_name: str
    completion_rate: float   # 0.0 – 100.0
    logs_tracked: int
    logs_completed: int


@dataclass
class IntentStats:
    intent_name: str
    status: str


@dataclass
class SummaryReport:
    start: datetime
    end: datetime
    date_range: str
    focus: FocusStats = field(default_factory=FocusStats)
    habits: list[HabitStats] = field(default_factory=list)
    intents: list[IntentStats] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def format_minutes(minutes: float) -> str:
    """90 -> "1hr 30min", 120 -> "2hr", 45 -> "45min"."""
    total = int(round(minutes))
    hours, mins = divmod(total, 60)
    if hours > 0 and mins > 0:
        return f"{hours}hr {mins}min"
    if hours > 0:
        return f"{hours}hr"
    return f"{mins}min"


def date_range_label(start: datetime, end: datetime) -> str:
    return f"{start.strftime(DATE_LABEL_FORMAT)} to {end.strftime(DATE_LABEL_FORMAT)}"


def _end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)


def _parse_day(value: Union[date, str], field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(
            f"{field_name} must be a YYYY-MM-DD date, got {value!r}", field=field_name
        ) from None


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------

def daily_window(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """The last 24 hours."""
    end = as_utc(now or utcnow())
    return end - timedelta(hours=24), end


def weekly_window(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """From midnight seven days ago until now."""
    end = as_utc(now or utcnow())
    return start_of_day(end - timedelta(days=7)), end


def monthly_window(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """The whole current calendar month."""
    now = as_utc(now or utcnow())
    start = start_of_day(now.replace(day=1))
    last_day = calendar.monthrange(now.year, now.month)[1]
    end = start_of_day(now.replace(day=last_day)) + timedelta(days=1, microseconds=-1)
    return start, end


def yearly_window(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """From midnight of the same day one year ago until now."""
    now = as_utc(now or utcnow())
    try:
        start = now.replace(year=now.year - 1)
    except ValueError:
        # Feb 29 -> Feb 28
        start = now.replace(year=now.year - 1, day=28)
    return start_of_day(start), now


WINDOWS = {
    "daily": daily_window,
    "weekly": weekly_window,
    "monthly": monthly_window,
    "yearly": yearly_window,
}


def custom_window(
    start_date: Union[date, str],
    end_date: Union[date, str],
) -> tuple[datetime, datetime]:
    """Whole days: start at 00:00:00, end at 23:59:59 of the given dates."""
    start_day = _parse_day(start_date, "start_date")
    end_day = _parse_day(end_date, "end_date")
    if start_day > end_day:
        raise ValidationError("start_date must not be after end_date", field="start_date")
    start = datetime.combine(start_day, time.min, tzinfo=timezone.utc)
    return start, _end_of_day(end_day)


# ---------------------------------------------------------------------------
# Core: aggregation over repositories (pure reads)
# ---------------------------------------------------------------------------

def _focus_stats(focus_repo, start: datetime, end: datetime, now: datetime) -> FocusStats:
    sessions = focus_repo.get_by_date_range(start, end)
    if not sessions:
        return FocusStats()

    durations = [s.current_duration(now) for s in sessions]
    total = sum(durations)
    longest = max(durations)
    return FocusStats(
        total_sessions=len(sessions),
        total_duration=format_minutes(total),
        longest_session=format_minutes(longest),
        total_minutes=total,
        longest_minutes=longest,
    )


def _habit_stats(habit_repo, log_repo, start: datetime, end: datetime) -> list[HabitStats]:
    habits = habit_repo.get_all()
    if not habits:
        return []
    logs = log_repo.get_by_date_range(start, end)

    stats: list[HabitStats] = []
    for habit in habits:
        mine = [log for log in logs if log.habit_id == habit.id]
        if not mine:
            continue
        completed = sum(1 for log in mine if log.is_completed)
        stats.append(HabitStats(
            habit_id=habit.id,
            habit_name=habit.title,
            completion_rate=completed * 100 / len(mine),
            logs_tracked=len(mine),
            logs_completed=completed,
        ))
    return stats


def _intent_stats(intent_repo, start: datetime, end: datetime) -> list[IntentStats]:
    return [
        IntentStats(intent_name=i.name, status=i.status.value)
        for i in intent_repo.get_by_date_range(start, end)
    ]


def build_summary(
    focus_repo,
    habit_repo,
    log_repo,
    intent_repo,
    start: datetime,
    end: datetime,
    now: Optional[datetime] = None,
) -> SummaryReport:
    """Aggregate one report from the four repositories."""
    start, end = as_utc(start), as_utc(end)
    if start > end:
        raise ValidationError("start must not be after end", field="start")
    now = as_utc(now or utcnow())

    return SummaryReport(
        start=start,
        end=end,
        date_range=date_range_label(start, end),
        focus=_focus_stats(focus_repo, start, end, now),
        habits=_habit_stats(habit_repo, log_repo, start, end),
        intents=_intent_stats(intent_repo, start, end),
    )


# ---------------------------------------------------------------------------
# Public: session-bound helpers
# ---------------------------------------------------------------------------

def generate_summary(
    db: Session,
    start: datetime,
    end: datetime,
    now: Optional[datetime] = None,
) -> SummaryReport:
    report = build_summary(
        FocusSessionRepository(db),
        HabitRepository(db),
        HabitLogRepository(db),
        IntentRepository(db),
        start,
        end,
        now,
    )
    logger.info(
        "summary_built",
        date_range=report.date_range,
        focus_sessions=report.focus.total_sessions,
        habits=len(report.habits),
        intents=len(report.intents),
    )
    return report


def summary_for(db: Session, period: str, now: Optional[datetime] = None) -> SummaryReport:
    """Report for one of the predefined windows: daily, weekly, monthly, yearly."""
    window = WINDOWS.get(period)
    if window is None:
        raise ValidationError(
            f"unknown summary period {period!r} (expected one of: {', '.join(WINDOWS)})",
            field="period",
        )
    start, end = window(now)
    return generate_summary(db, start, end, now)


def custom_summary(
    db: Session,
    start_date: Union[date, str],
    end_date: Union[date, str],
    now: Optional[datetime] = None,
) -> SummaryReport:
    start, end = custom_window(start_date, end_date)
    return generate_summary(db, start, end, now)
