from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from mindloop.domain.validation import parse_choice, require_text

TITLE_MAX_LENGTH = 100


class Mood(str, enum.Enum):
    happy = "happy"
    sad = "sad"
    neutral = "neutral"
    angry = "angry"
    excited = "excited"


@dataclass
class JournalEntry:
    title: str
    content: str
    mood: Mood = Mood.neutral
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def new(cls, title: str, content: str, mood: Optional[str] = None) -> "JournalEntry":
        entry = cls(title=title, content=content, mood=mood or Mood.neutral)
        entry.validate()
        return entry

    def validate(self) -> None:
        self.title = require_text(self.title, "title", TITLE_MAX_LENGTH)
        self.content = require_text(self.content, "content")
        self.mood = parse_choice(Mood, self.mood, "mood")

    def update_content(self, content: str) -> None:
        self.content = require_text(content, "content")

    def update_mood(self, mood: str) -> None:
        self.mood = parse_choice(Mood, mood, "mood")
