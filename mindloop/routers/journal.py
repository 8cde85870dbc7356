from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mindloop.db.base import get_db
from mindloop.schemas.common import ERROR_RESPONSES, Envelope
from mindloop.schemas.journal import JournalCreateRequest, JournalEntryOut, JournalUpdateRequest
from mindloop.services import journal as journal_service

router = APIRouter(prefix="/api/journal", tags=["journal"], responses=ERROR_RESPONSES)


@router.get("", response_model=Envelope[list[JournalEntryOut]], summary="List journal entries")
def list_entries(db: Session = Depends(get_db)):
    """Newest first."""
    entries = journal_service.list_entries(db)
    return Envelope(data=[JournalEntryOut.model_validate(e) for e in entries])


@router.post(
    "",
    response_model=Envelope[JournalEntryOut],
    status_code=status.HTTP_201_CREATED,
    summary="Write a journal entry",
)
def create_entry(payload: JournalCreateRequest, db: Session = Depends(get_db)):
    entry = journal_service.create_entry(db, payload.title, payload.content, payload.mood.value)
    return Envelope(data=JournalEntryOut.model_validate(entry), message="Journal entry saved.")


@router.get("/{entry_id}", response_model=Envelope[JournalEntryOut], summary="Read a journal entry")
def get_entry(entry_id: int, db: Session = Depends(get_db)):
    return Envelope(data=JournalEntryOut.model_validate(journal_service.get_entry(db, entry_id)))


@router.patch(
    "/{entry_id}",
    response_model=Envelope[JournalEntryOut],
    summary="Update content and/or mood",
)
def update_entry(entry_id: int, payload: JournalUpdateRequest, db: Session = Depends(get_db)):
    entry = journal_service.update_entry(
        db,
        entry_id,
        content=payload.content,
        mood=payload.mood.value if payload.mood else None,
    )
    return Envelope(data=JournalEntryOut.model_validate(entry), message="Journal entry updated.")


@router.delete("/{entry_id}", response_model=Envelope[None], summary="Delete a journal entry")
def delete_entry(entry_id: int, db: Session = Depends(get_db)):
    journal_service.delete_entry(db, entry_id)
    return Envelope(message=f"Journal entry {entry_id} deleted.")
