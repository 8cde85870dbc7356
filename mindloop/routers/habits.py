"""
Habits router.

GET    /api/habits                 — list habits (?interval=daily|weekly)
POST   /api/habits                 — create a habit
GET    /api/habits/{id}            — one habit
PUT    /api/habits/{id}            — update title / description / target / interval
DELETE /api/habits/{id}            — delete a habit and its logs
POST   /api/habits/{id}/log        — record completions for the current period
POST   /api/habits/{id}/unlog      — reset the current period to zero
GET    /api/habits/{id}/logs       — log history of one habit
GET    /api/habit-logs             — log history of all habits (?interval=)
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mindloop.db.base import get_db
from mindloop.domain.habit import Habit, HabitLog, Interval
from mindloop.schemas.common import ERROR_RESPONSES, Envelope
from mindloop.schemas.habit import (
    HabitCreate,
    HabitLogOut,
    HabitLogRequest,
    HabitLogResultOut,
    HabitOut,
    HabitUpdate,
)
from mindloop.services import habits as habit_service

router = APIRouter(prefix="/api", tags=["habits"], responses=ERROR_RESPONSES)


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _habit_to_response(habit: Habit) -> HabitOut:
    return HabitOut.model_validate(habit)


def _log_to_response(log: HabitLog) -> HabitLogOut:
    return HabitLogOut(
        id=log.id,
        habit_id=log.habit_id,
        title=log.title,
        interval=log.interval,
        target_count=log.target_count,
        actual_count=log.actual_count,
        period_key=log.period_key,
        ended_at=log.ended_at,
        is_completed=log.is_completed,
        created_at=log.created_at,
    )


def _result_to_response(habit: Habit, log: HabitLog) -> HabitLogResultOut:
    return HabitLogResultOut(habit=_habit_to_response(habit), log=_log_to_response(log))


def _interval_value(interval: Optional[Interval]) -> Optional[str]:
    return interval.value if interval else None


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.get(
    "/habits",
    response_model=Envelope[list[HabitOut]],
    summary="List habits",
)
def list_habits(
    interval: Optional[Interval] = Query(default=None, description="Only habits with this interval."),
    db: Session = Depends(get_db),
):
    habits = habit_service.list_habits(db, _interval_value(interval))
    return Envelope(data=[_habit_to_response(h) for h in habits])


@router.post(
    "/habits",
    response_model=Envelope[HabitOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create a habit",
)
def create_habit(payload: HabitCreate, db: Session = Depends(get_db)):
    """
    Omitted fields fall back to the defaults: target_count 1, interval
    daily and the default description.
    """
    habit = habit_service.create_habit(
        db,
        title=payload.title,
        description=payload.description,
        target_count=payload.target_count,
        interval=_interval_value(payload.interval),
    )
    return Envelope(data=_habit_to_response(habit), message=f"Habit '{habit.title}' created.")


@router.get("/habits/{habit_id}", response_model=Envelope[HabitOut], summary="Get a habit")
def get_habit(habit_id: int, db: Session = Depends(get_db)):
    return Envelope(data=_habit_to_response(habit_service.get_habit(db, habit_id)))


@router.put("/habits/{habit_id}", response_model=Envelope[HabitOut], summary="Update a habit")
def update_habit(habit_id: int, payload: HabitUpdate, db: Session = Depends(get_db)):
    habit = habit_service.update_habit(
        db,
        habit_id,
        title=payload.title,
        description=payload.description,
        target_count=payload.target_count,
        interval=_interval_value(payload.interval),
    )
    return Envelope(data=_habit_to_response(habit), message="Habit updated.")


@router.delete("/habits/{habit_id}", response_model=Envelope[None], summary="Delete a habit")
def delete_habit(habit_id: int, db: Session = Depends(get_db)):
    habit_service.delete_habit(db, habit_id)
    return Envelope(message=f"Habit {habit_id} deleted.")


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@router.post(
    "/habits/{habit_id}/log",
    response_model=Envelope[HabitLogResultOut],
    summary="Log a habit for the current period",
    responses={
        409: {"description": "The habit already reached its target this period."},
    },
)
def log_habit(
    habit_id: int,
    payload: Optional[HabitLogRequest] = None,
    db: Session = Depends(get_db),
):
    """
    Adds `actual_count` completions (default 1) to the habit's log for the
    current day (daily) or ISO week (weekly), creating the log on first use.
    Logging a habit that already met its target answers 409
    `HABIT_ALREADY_COMPLETED` and changes nothing.
    """
    count = payload.actual_count if payload else 1
    habit, log = habit_service.log_habit(db, habit_id, count=count)
    message = (
        f"Habit '{habit.title}' completed for this period."
        if log.is_completed
        else f"Habit '{habit.title}' logged ({log.actual_count}/{log.target_count})."
    )
    return Envelope(data=_result_to_response(habit, log), message=message)


@router.post(
    "/habits/{habit_id}/unlog",
    response_model=Envelope[HabitLogResultOut],
    summary="Undo the current period's progress",
)
def unlog_habit(habit_id: int, db: Session = Depends(get_db)):
    habit, log = habit_service.unlog_habit(db, habit_id)
    return Envelope(
        data=_result_to_response(habit, log),
        message=f"Habit '{habit.title}' marked as undone.",
    )


@router.get(
    "/habits/{habit_id}/logs",
    response_model=Envelope[list[HabitLogOut]],
    summary="Log history of one habit",
)
def habit_logs(habit_id: int, db: Session = Depends(get_db)):
    logs = habit_service.list_habit_logs(db, habit_id=habit_id)
    return Envelope(data=[_log_to_response(log) for log in logs])


@router.get(
    "/habit-logs",
    response_model=Envelope[list[HabitLogOut]],
    summary="Log history of all habits",
)
def all_habit_logs(
    interval: Optional[Interval] = Query(default=None),
    db: Session = Depends(get_db),
):
    logs = habit_service.list_habit_logs(db, interval=_interval_value(interval))
    return Envelope(data=[_log_to_response(log) for log in logs])
