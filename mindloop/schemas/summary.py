"""
Summary schemas.

GET  /api/summary/{period}  → SummaryOut
POST /api/summary/custom    → CustomSummaryRequest → SummaryOut
"""
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class CustomSummaryRequest(BaseModel):
    start_date: date = Field(description="First day (inclusive).", examples=["2024-01-01"])
    end_date: date = Field(
        description="Last day (inclusive, until 23:59:59).", examples=["2024-01-07"]
    )


class FocusStatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_sessions: int
    total_duration: str = Field(examples=["2hr"])
    longest_session: str = Field(examples=["1hr 30min"])
    total_minutes: float
    longest_minutes: float


class HabitStatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    habit_id: int
    habit_name: str
    completion_rate: float = Field(description="Completed logs / tracked logs × 100.")
    logs_tracked: int
    logs_completed: int


class IntentStatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    intent_name: str
    status: str


class SummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: datetime
    end: datetime
    date_range: str = Field(examples=["01-Jan-2024 to 07-Jan-2024"])
    focus: FocusStatsOut
    habits: list[HabitStatsOut]
    intents: list[IntentStatsOut]


class CleanSlateRequest(BaseModel):
    target: str = Field(
        default="all",
        description='"all", "journal", "habits", "focus" or "intents".',
    )
