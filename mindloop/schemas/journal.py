from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mindloop.domain.journal import Mood


class JournalCreateRequest(BaseModel):
    title: Annotated[str, Field(min_length=1, max_length=100, examples=["Monday"])]
    content: Annotated[str, Field(min_length=1, examples=["Shipped the release."])]
    mood: Mood = Field(default=Mood.neutral, examples=["happy"])

    @field_validator("title", "content", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if isinstance(stripped, str) and not stripped:
            raise ValueError("must not be empty after stripping whitespace")
        return stripped


class JournalUpdateRequest(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1)
    mood: Optional[Mood] = None


class JournalEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    mood: Mood
    created_at: Optional[datetime] = None
