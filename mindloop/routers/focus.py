"""
Focus sessions router.

GET    /api/focus                — list sessions (?status=active|paused|ended)
POST   /api/focus                — start a session
GET    /api/focus/{id}           — one session
DELETE /api/focus/{id}           — delete a session
POST   /api/focus/{id}/end       — end an active session (409 otherwise)
POST   /api/focus/{id}/pause     — pause; no-op unless active
POST   /api/focus/{id}/resume    — resume; no-op unless paused
POST   /api/focus/{id}/rate      — rate an ended session 0-10
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mindloop.db.base import get_db
from mindloop.domain.focus import FocusSession, FocusStatus
from mindloop.schemas.common import ERROR_RESPONSES, Envelope
from mindloop.schemas.focus import FocusRateRequest, FocusSessionOut, FocusStartRequest
from mindloop.services import focus as focus_service

router = APIRouter(prefix="/api/focus", tags=["focus"], responses=ERROR_RESPONSES)


def _session_to_response(session: FocusSession) -> FocusSessionOut:
    return FocusSessionOut(
        id=session.id,
        title=session.title,
        status=session.status,
        end_time=session.end_time,
        duration_minutes=round(session.current_duration(), 2),
        rating=session.rating,
        created_at=session.created_at,
    )


@router.get("", response_model=Envelope[list[FocusSessionOut]], summary="List focus sessions")
def list_sessions(
    status_filter: Optional[FocusStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
):
    sessions = focus_service.list_focus(db, status_filter.value if status_filter else None)
    return Envelope(data=[_session_to_response(s) for s in sessions])


@router.post(
    "",
    response_model=Envelope[FocusSessionOut],
    status_code=status.HTTP_201_CREATED,
    summary="Start a focus session",
)
def start_session(payload: FocusStartRequest, db: Session = Depends(get_db)):
    session = focus_service.start_focus(db, payload.title)
    return Envelope(data=_session_to_response(session), message="Focus session started.")


@router.get("/{session_id}", response_model=Envelope[FocusSessionOut], summary="Get a focus session")
def get_session(session_id: int, db: Session = Depends(get_db)):
    return Envelope(data=_session_to_response(focus_service.get_focus(db, session_id)))


@router.delete("/{session_id}", response_model=Envelope[None], summary="Delete a focus session")
def delete_session(session_id: int, db: Session = Depends(get_db)):
    focus_service.delete_focus(db, session_id)
    return Envelope(message=f"Focus session {session_id} deleted.")


@router.post(
    "/{session_id}/end",
    response_model=Envelope[FocusSessionOut],
    summary="End an active focus session",
)
def end_session(session_id: int, db: Session = Depends(get_db)):
    """
    Stores the end time and the duration in minutes. Paused sessions have
    to be resumed first; ending anything but an active session answers 409.
    """
    session = focus_service.end_focus(db, session_id)
    return Envelope(data=_session_to_response(session), message="Focus session ended.")


@router.post("/{session_id}/pause", response_model=Envelope[FocusSessionOut], summary="Pause")
def pause_session(session_id: int, db: Session = Depends(get_db)):
    session = focus_service.pause_focus(db, session_id)
    return Envelope(data=_session_to_response(session), message=f"Focus session {session.status.value}.")


@router.post("/{session_id}/resume", response_model=Envelope[FocusSessionOut], summary="Resume")
def resume_session(session_id: int, db: Session = Depends(get_db)):
    session = focus_service.resume_focus(db, session_id)
    return Envelope(data=_session_to_response(session), message=f"Focus session {session.status.value}.")


@router.post("/{session_id}/rate", response_model=Envelope[FocusSessionOut], summary="Rate a session")
def rate_session(session_id: int, payload: FocusRateRequest, db: Session = Depends(get_db)):
    session = focus_service.rate_focus(db, session_id, payload.rating)
    return Envelope(data=_session_to_response(session), message=f"Rated {session.rating}/10.")
