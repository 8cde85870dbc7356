from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mindloop.domain.focus import FocusStatus


class FocusStartRequest(BaseModel):
    title: Annotated[str, Field(
        min_length=1,
        max_length=256,
        description="What this session is about.",
        examples=["Write the report"],
    )]

    @field_validator("title", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if isinstance(stripped, str) and not stripped:
            raise ValueError("title must not be empty after stripping whitespace")
        return stripped


class FocusRateRequest(BaseModel):
    # Range is enforced by the session itself so the API and CLI share one message
    rating: int = Field(description="0-10.", examples=[8])


class FocusSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    status: FocusStatus
    end_time: Optional[datetime] = None
    duration_minutes: float = Field(
        description="Stored duration once ended, elapsed minutes so far otherwise."
    )
    rating: int = Field(description="0-10, -1 when not rated.")
    created_at: Optional[datetime] = None
