"""
Focus session service.

Pause and resume from a state that does not allow them are no-ops that
return the session unchanged. Ending a session that is not active is an
InvalidStateError and never touches status or duration.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from mindloop.core.errors import InvalidStateError
from mindloop.core.log import get_logger
from mindloop.domain.focus import FocusSession, FocusStatus
from mindloop.domain.validation import parse_choice
from mindloop.repositories import FocusSessionRepository

logger = get_logger(__name__)


def start_focus(db: Session, title: str) -> FocusSession:
    session = FocusSessionRepository(db).create(FocusSession.start(title))
    logger.info("focus_started", session_id=session.id, title=session.title)
    return session


def get_focus(db: Session, session_id: int) -> FocusSession:
    return FocusSessionRepository(db).get_by_id(session_id)


def list_focus(db: Session, status: Optional[str] = None) -> list[FocusSession]:
    """All sessions, newest first, optionally filtered by status."""
    wanted = parse_choice(FocusStatus, status, "status") if status else None
    return FocusSessionRepository(db).get_all(wanted)


def end_focus(db: Session, session_id: int, now: Optional[datetime] = None) -> FocusSession:
    repo = FocusSessionRepository(db)
    session = repo.get_by_id(session_id)
    if not session.end(now):
        raise InvalidStateError(
            "focus session is not active",
            details={"id": session.id, "status": session.status.value},
        )
    session = repo.update(session)
    logger.info("focus_ended", session_id=session.id, minutes=round(session.duration_minutes, 1))
    return session


def pause_focus(db: Session, session_id: int) -> FocusSession:
    repo = FocusSessionRepository(db)
    session = repo.get_by_id(session_id)
    if not session.pause():
        logger.debug("focus_pause_ignored", session_id=session.id, status=session.status.value)
        return session
    logger.info("focus_paused", session_id=session.id)
    return repo.update(session)


def resume_focus(db: Session, session_id: int) -> FocusSession:
    repo = FocusSessionRepository(db)
    session = repo.get_by_id(session_id)
    if not session.resume():
        logger.debug("focus_resume_ignored", session_id=session.id, status=session.status.value)
        return session
    logger.info("focus_resumed", session_id=session.id)
    return repo.update(session)


def rate_focus(db: Session, session_id: int, rating: int) -> FocusSession:
    repo = FocusSessionRepository(db)
    session = repo.get_by_id(session_id)
    session.rate(rating)
    logger.info("focus_rated", session_id=session.id, rating=rating)
    return repo.update(session)


def delete_focus(db: Session, session_id: int) -> None:
    FocusSessionRepository(db).delete(session_id)
