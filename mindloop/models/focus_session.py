from datetime import datetime
from sqlalchemy import Integer, String, Float, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column

from mindloop.db.base import Base
from mindloop.domain.focus import FocusStatus, UNRATED
from mindloop.domain.period import utcnow


class FocusSessionRow(Base):
    __tablename__ = "focus_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    status: Mapped[FocusStatus] = mapped_column(
        Enum(FocusStatus, name="focus_status_enum"),
        nullable=False,
        default=FocusStatus.active,
        index=True,
    )
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_minutes: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating: Mapped[int] = mapped_column(
        Integer, nullable=False, default=UNRATED,
        comment="0-10, -1 when not rated",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(),
        nullable=False, index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )
