from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from mindloop.core.log import get_logger
from mindloop.domain.intent import Intent, IntentStatus
from mindloop.domain.validation import parse_choice
from mindloop.repositories import IntentRepository

logger = get_logger(__name__)


def start_intent(db: Session, name: str) -> Intent:
    intent = IntentRepository(db).create(Intent.start(name))
    logger.info("intent_started", intent_id=intent.id, name=intent.name)
    return intent


def get_intent(db: Session, intent_id: int) -> Intent:
    return IntentRepository(db).get_by_id(intent_id)


def list_intents(db: Session, status: Optional[str] = None) -> list[Intent]:
    wanted = parse_choice(IntentStatus, status, "status") if status else None
    return IntentRepository(db).get_all(wanted)


def list_active_intents(db: Session) -> list[Intent]:
    return IntentRepository(db).get_active()


def end_intent(db: Session, intent_id: int, now: Optional[datetime] = None) -> Intent:
    repo = IntentRepository(db)
    intent = repo.get_by_id(intent_id)
    intent.end(now)
    logger.info("intent_done", intent_id=intent.id)
    return repo.update(intent)


def delete_intent(db: Session, intent_id: int) -> None:
    IntentRepository(db).delete(intent_id)
