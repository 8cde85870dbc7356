"""
Habit request / response schemas.

POST /api/habits              → HabitCreate     → HabitOut
PUT  /api/habits/{id}         → HabitUpdate     → HabitOut
POST /api/habits/{id}/log     → HabitLogRequest → HabitLogResultOut
POST /api/habits/{id}/unlog                     → HabitLogResultOut
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mindloop.domain.habit import Interval


def _strip_title(v):
    stripped = v.strip() if isinstance(v, str) else v
    if isinstance(stripped, str) and not stripped:
        raise ValueError("title must not be empty after stripping whitespace")
    return stripped


class HabitCreate(BaseModel):
    title: Annotated[str, Field(
        min_length=1,
        max_length=100,
        description="Habit title.",
        examples=["Exercise"],
    )]
    description: Optional[str] = Field(
        default=None,
        description='Free text. Defaults to "Default habit description".',
    )
    target_count: Optional[int] = Field(
        default=None,
        ge=1,
        description="Completions needed per period. Defaults to 1.",
        examples=[1],
    )
    interval: Optional[Interval] = Field(
        default=None,
        description="Period the target applies to. Defaults to daily.",
        examples=["daily", "weekly"],
    )

    @field_validator("title", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        return _strip_title(v)


class HabitUpdate(BaseModel):
    """Fields to change; omitted fields keep their current value."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    target_count: Optional[int] = Field(default=None, ge=1)
    interval: Optional[Interval] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v):
        return _strip_title(v) if v is not None else v


class HabitLogRequest(BaseModel):
    actual_count: int = Field(
        default=1,
        ge=1,
        description="Completions to add to the current period.",
        examples=[1],
    )


class HabitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    interval: Interval
    target_count: int
    created_at: Optional[datetime] = None


class HabitLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    habit_id: int
    title: str
    interval: Interval
    target_count: int
    actual_count: int
    period_key: str = Field(description='"YYYY-MM-DD" (daily) or "YYYY-Www" (weekly).')
    ended_at: datetime = Field(description="End marker of the period this log covers.")
    is_completed: bool
    created_at: Optional[datetime] = None


class HabitLogResultOut(BaseModel):
    habit: HabitOut
    log: HabitLogOut
