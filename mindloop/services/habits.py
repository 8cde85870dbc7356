"""
Habit service — CRUD plus the logging state machine.

State machine (per habit, per period — see mindloop.domain.period)
-----------------------------------------------------------------
  no log            --log-->    log(actual=count)
  log, incomplete   --log-->    log(actual += count)
  log, complete     --log-->    HabitAlreadyCompletedError, nothing written
  log, actual > 0   --unlog-->  log(actual = 0)
  log, actual == 0  --unlog-->  HabitAlreadyUndoneError
  no log            --unlog-->  NoHabitLogError

"Complete" means actual >= the habit's current target_count; each
increment refreshes the log's target_count from the habit.

Logs are matched on (habit_id, period_key) for both actions, and the
habit_logs table has a unique constraint on that pair.

Public API
----------
create_habit / get_habit / list_habits / update_habit / delete_habit
log_habit(db, habit_id, count, now)     -> (Habit, HabitLog)
unlog_habit(db, habit_id, now)          -> (Habit, HabitLog)
list_habit_logs(db, habit_id, interval) -> list[HabitLog]
current_progress(db, habits, now)       -> list[HabitProgress]
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from mindloop.core.errors import (
    HabitAlreadyCompletedError,
    HabitAlreadyUndoneError,
    NoHabitLogError,
    ValidationError,
)
from mindloop.core.log import get_logger
from mindloop.domain.habit import Habit, HabitLog, Interval
from mindloop.domain.period import period_for
from mindloop.domain.validation import parse_choice
from mindloop.repositories import HabitLogRepository, HabitRepository

logger = get_logger(__name__)


@dataclass
class HabitProgress:
    habit: Habit
    period_key: str
    actual_count: int
    progress_pct: int

    @property
    def is_completed(self) -> bool:
        return self.actual_count >= self.habit.target_count


def _interval_or_none(interval: Optional[str]) -> Optional[Interval]:
    return parse_choice(Interval, interval, "interval") if interval else None


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def create_habit(
    db: Session,
    title: str,
    description: Optional[str] = None,
    target_count: Optional[int] = None,
    interval: Optional[str] = None,
) -> Habit:
    habit = HabitRepository(db).create(
        Habit.new(title, description=description, target_count=target_count, interval=interval)
    )
    logger.info("habit_created", habit_id=habit.id, interval=habit.interval.value, target=habit.target_count)
    return habit


def get_habit(db: Session, habit_id: int) -> Habit:
    return HabitRepository(db).get_by_id(habit_id)


def list_habits(db: Session, interval: Optional[str] = None) -> list[Habit]:
    return HabitRepository(db).get_all(_interval_or_none(interval))


def update_habit(
    db: Session,
    habit_id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    target_count: Optional[int] = None,
    interval: Optional[str] = None,
) -> Habit:
    """Update the given fields in place; omitted fields keep their value."""
    repo = HabitRepository(db)
    habit = repo.get_by_id(habit_id)
    if title is not None:
        habit.title = title
    if description is not None:
        habit.description = description
    if target_count is not None:
        habit.target_count = target_count
    if interval is not None:
        habit.interval = interval
    habit.validate()
    updated = repo.update(habit)
    logger.info("habit_updated", habit_id=habit_id)
    return updated


def delete_habit(db: Session, habit_id: int) -> None:
    HabitRepository(db).delete(habit_id)
    logger.info("habit_deleted", habit_id=habit_id)


def list_habit_logs(
    db: Session,
    habit_id: Optional[int] = None,
    interval: Optional[str] = None,
) -> list[HabitLog]:
    """Logs newest first, either for one habit or across all habits."""
    repo = HabitLogRepository(db)
    if habit_id is not None:
        HabitRepository(db).get_by_id(habit_id)
        return repo.get_by_habit_id(habit_id)
    return repo.get_all(_interval_or_none(interval))


# ---------------------------------------------------------------------------
# Logging state machine
# ---------------------------------------------------------------------------

def log_habit(
    db: Session,
    habit_id: int,
    count: int = 1,
    now: Optional[datetime] = None,
) -> tuple[Habit, HabitLog]:
    """Record `count` completions of a habit in the current period."""
    if not isinstance(count, int) or count < 1:
        raise ValidationError("count must be at least 1", field="actual_count")

    habit = HabitRepository(db).get_by_id(habit_id)
    logs = HabitLogRepository(db)
    period = period_for(habit.interval, now)

    existing = logs.get_for_period(habit.id, period.key)
    if existing is not None:
        # Current target, not the copy on the log
        if existing.actual_count >= habit.target_count:
            raise HabitAlreadyCompletedError(habit.title, existing)
        existing.actual_count += count
        existing.target_count = habit.target_count
        existing.ended_at = period.end
        log = logs.update(existing)
        logger.info(
            "habit_logged",
            habit_id=habit.id,
            period=period.key,
            progress=f"{log.actual_count}/{log.target_count}",
        )
        return habit, log

    log = logs.create(HabitLog(
        habit_id=habit.id,
        title=habit.title,
        interval=habit.interval,
        target_count=habit.target_count,
        actual_count=count,
        ended_at=period.end,
        period_key=period.key,
    ))
    logger.info(
        "habit_period_opened",
        habit_id=habit.id,
        period=period.key,
        progress=f"{log.actual_count}/{log.target_count}",
    )
    return habit, log


def unlog_habit(
    db: Session,
    habit_id: int,
    now: Optional[datetime] = None,
) -> tuple[Habit, HabitLog]:
    """Reset the current period's progress for a habit to zero."""
    habit = HabitRepository(db).get_by_id(habit_id)
    logs = HabitLogRepository(db)
    period = period_for(habit.interval, now)

    existing = logs.get_for_period(habit.id, period.key)
    if existing is None:
        raise NoHabitLogError(habit.id, period.key)
    if existing.actual_count <= 0:
        raise HabitAlreadyUndoneError(habit.title, period.key)

    existing.actual_count = 0
    log = logs.update(existing)
    logger.info("habit_unlogged", habit_id=habit.id, period=period.key)
    return habit, log


def current_progress(
    db: Session,
    habits: list[Habit],
    now: Optional[datetime] = None,
) -> list[HabitProgress]:
    """Progress of each habit in its current period (0-100, capped)."""
    logs = HabitLogRepository(db)
    result = []
    for habit in habits:
        period = period_for(habit.interval, now)
        log = logs.get_for_period(habit.id, period.key)
        actual = log.actual_count if log else 0
        pct = min(100, actual * 100 // habit.target_count) if habit.target_count > 0 else 0
        result.append(HabitProgress(
            habit=habit, period_key=period.key, actual_count=actual, progress_pct=pct,
        ))
    return result
