"""
Summary router.

GET  /api/summary/daily      — last 24 hours
GET  /api/summary/weekly     — since midnight seven days ago
GET  /api/summary/monthly    — the current calendar month
GET  /api/summary/yearly     — since the same day last year
POST /api/summary/custom     — whole days from start_date to end_date
POST /api/clean-slate        — delete all records of one kind, or everything
"""
from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mindloop.db.base import get_db
from mindloop.schemas.common import ERROR_RESPONSES, Envelope
from mindloop.schemas.summary import CleanSlateRequest, CustomSummaryRequest, SummaryOut
from mindloop.services import maintenance
from mindloop.services import summary as summary_service

router = APIRouter(prefix="/api", tags=["summary"], responses=ERROR_RESPONSES)


@router.get(
    "/summary/{period}",
    response_model=Envelope[SummaryOut],
    summary="Summary for a predefined window",
)
def period_summary(
    period: Literal["daily", "weekly", "monthly", "yearly"],
    db: Session = Depends(get_db),
):
    """
    Focus totals, per-habit completion rates and the intents started in
    the window. Habits without any log in the window are omitted.
    """
    report = summary_service.summary_for(db, period)
    return Envelope(data=SummaryOut.model_validate(report), message=report.date_range)


@router.post(
    "/summary/custom",
    response_model=Envelope[SummaryOut],
    summary="Summary for a custom date range",
)
def custom_summary(payload: CustomSummaryRequest, db: Session = Depends(get_db)):
    report = summary_service.custom_summary(db, payload.start_date, payload.end_date)
    return Envelope(data=SummaryOut.model_validate(report), message=report.date_range)


@router.post(
    "/clean-slate",
    response_model=Envelope[dict[str, int]],
    summary="Delete all data of one kind",
    tags=["maintenance"],
)
def clean_slate(payload: CleanSlateRequest, db: Session = Depends(get_db)):
    """Returns the number of deleted records per kind. This cannot be undone."""
    deleted = maintenance.clean_slate(db, payload.target)
    return Envelope(data=deleted, message=f"Clean slate: {payload.target}.")
