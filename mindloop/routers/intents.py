from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mindloop.db.base import get_db
from mindloop.domain.intent import IntentStatus
from mindloop.schemas.common import ERROR_RESPONSES, Envelope
from mindloop.schemas.intent import IntentOut, IntentStartRequest
from mindloop.services import intents as intent_service

router = APIRouter(prefix="/api/intents", tags=["intents"], responses=ERROR_RESPONSES)


@router.get("", response_model=Envelope[list[IntentOut]], summary="List intents")
def list_intents(
    status_filter: Optional[IntentStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
):
    intents = intent_service.list_intents(db, status_filter.value if status_filter else None)
    return Envelope(data=[IntentOut.model_validate(i) for i in intents])


@router.post(
    "",
    response_model=Envelope[IntentOut],
    status_code=status.HTTP_201_CREATED,
    summary="Start an intent",
)
def start_intent(payload: IntentStartRequest, db: Session = Depends(get_db)):
    intent = intent_service.start_intent(db, payload.name)
    return Envelope(data=IntentOut.model_validate(intent), message="Intent started.")


@router.get("/{intent_id}", response_model=Envelope[IntentOut], summary="Get an intent")
def get_intent(intent_id: int, db: Session = Depends(get_db)):
    return Envelope(data=IntentOut.model_validate(intent_service.get_intent(db, intent_id)))


@router.post("/{intent_id}/end", response_model=Envelope[IntentOut], summary="Mark an intent done")
def end_intent(intent_id: int, db: Session = Depends(get_db)):
    """Answers 409 when the intent is already done."""
    intent = intent_service.end_intent(db, intent_id)
    return Envelope(data=IntentOut.model_validate(intent), message=f"Intent '{intent.name}' done.")


@router.delete("/{intent_id}", response_model=Envelope[None], summary="Delete an intent")
def delete_intent(intent_id: int, db: Session = Depends(get_db)):
    intent_service.delete_intent(db, intent_id)
    return Envelope(message=f"Intent {intent_id} deleted.")
