from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mindloop.domain.intent import IntentStatus


class IntentStartRequest(BaseModel):
    name: Annotated[str, Field(
        min_length=1,
        max_length=256,
        examples=["Ship the beta this week"],
    )]

    @field_validator("name", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if isinstance(stripped, str) and not stripped:
            raise ValueError("name must not be empty after stripping whitespace")
        return stripped


class IntentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    status: IntentStatus
    ended_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
