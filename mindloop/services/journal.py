from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from mindloop.core.log import get_logger
from mindloop.domain.journal import JournalEntry
from mindloop.repositories import JournalRepository

logger = get_logger(__name__)


def create_entry(db: Session, title: str, content: str, mood: Optional[str] = None) -> JournalEntry:
    entry = JournalRepository(db).create(JournalEntry.new(title, content, mood))
    logger.info("journal_entry_created", entry_id=entry.id, mood=entry.mood.value)
    return entry


def list_entries(db: Session) -> list[JournalEntry]:
    return JournalRepository(db).get_all()


def get_entry(db: Session, entry_id: int) -> JournalEntry:
    return JournalRepository(db).get_by_id(entry_id)


def update_entry(
    db: Session,
    entry_id: int,
    content: Optional[str] = None,
    mood: Optional[str] = None,
) -> JournalEntry:
    """Content and mood are updated independently; omitted ones are kept."""
    repo = JournalRepository(db)
    entry = repo.get_by_id(entry_id)
    if content is not None:
        entry.update_content(content)
    if mood is not None:
        entry.update_mood(mood)
    return repo.update(entry)


def delete_entry(db: Session, entry_id: int) -> None:
    JournalRepository(db).delete(entry_id)
