"""
habits / habit_logs tables.

habit_logs carries a unique (habit_id, period_key) constraint: two
concurrent "first log of the period" requests cannot both insert, the
loser gets an IntegrityError instead of a silent duplicate.
"""
from datetime import datetime
from sqlalchemy import Integer, String, Text, DateTime, Enum, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from mindloop.db.base import Base
from mindloop.domain.habit import Interval
from mindloop.domain.period import utcnow


class HabitRow(Base):
    __tablename__ = "habits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    interval: Mapped[Interval] = mapped_column(
        Enum(Interval, name="habit_interval_enum"),
        nullable=False,
        default=Interval.daily,
        index=True,
    )
    target_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    # Soft delete marker; rows with a value are invisible to every read.
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )


class HabitLogRow(Base):
    __tablename__ = "habit_logs"
    __table_args__ = (
        UniqueConstraint("habit_id", "period_key", name="uq_habit_log_period"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    habit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    interval: Mapped[Interval] = mapped_column(
        Enum(Interval, name="habit_interval_enum"), nullable=False
    )
    target_count: Mapped[int] = mapped_column(Integer, nullable=False)
    actual_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    period_key: Mapped[str] = mapped_column(
        String(16), nullable=False,
        comment='"YYYY-MM-DD" for daily habits, "YYYY-Www" for weekly ones',
    )
    ended_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
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
