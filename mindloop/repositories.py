"""
SQL-backed repositories — one per entity.

Each repository maps ORM rows (which carry persistence metadata such as
updated_at / deleted_at) to the plain domain records in `mindloop.domain`
and back. Every public method either returns domain records or raises:

  NotFoundError  — the id does not exist (or the row is soft-deleted)
  StorageError   — any SQLAlchemy failure; the session is rolled back

Writes commit immediately; there is no cross-repository transaction.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from mindloop.core.errors import NotFoundError, StorageError
from mindloop.core.log import get_logger
from mindloop.domain.focus import FocusSession, FocusStatus
from mindloop.domain.habit import Habit, HabitLog, Interval
from mindloop.domain.intent import Intent, IntentStatus
from mindloop.domain.journal import JournalEntry, Mood
from mindloop.domain.period import as_utc, utcnow
from mindloop.models import FocusSessionRow, HabitLogRow, HabitRow, IntentRow, JournalEntryRow

logger = get_logger(__name__)


def _opt_utc(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


class _SQLRepository:
    model: type
    entity_name: str

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("storage_failure", operation=operation, error=str(exc))
            raise StorageError(operation=operation, reason=str(exc.__class__.__name__)) from exc

    def _query(self) -> Query:
        return self.db.query(self.model)

    def _get_row(self, entity_id: int):
        with self._guard(f"get {self.entity_name}"):
            row = self._query().filter(self.model.id == entity_id).first()
        if row is None:
            raise NotFoundError(self.entity_name, entity_id)
        return row

    def _in_range(self, query: Query, start: datetime, end: datetime) -> Query:
        return query.filter(
            self.model.created_at >= as_utc(start),
            self.model.created_at <= as_utc(end),
        )

    def _newest_first(self, query: Query) -> Query:
        return query.order_by(self.model.created_at.desc(), self.model.id.desc())

    def _insert(self, row, operation: str):
        with self._guard(operation):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        return row

    def _save(self, row, operation: str):
        with self._guard(operation):
            self.db.commit()
            self.db.refresh(row)
        return row

    def _all(self, query: Query, operation: str) -> list:
        with self._guard(operation):
            rows = query.all()
        return [self._to_entity(r) for r in rows]

    def _to_entity(self, row):
        raise NotImplementedError

    # --- shared CRUD ---

    def get_by_id(self, entity_id: int):
        return self._to_entity(self._get_row(entity_id))

    def get_by_date_range(self, start: datetime, end: datetime) -> list:
        """Records whose created_at falls inside [start, end], oldest first."""
        query = self._in_range(self._query(), start, end).order_by(self.model.created_at, self.model.id)
        return self._all(query, f"range query {self.entity_name}")

    def delete(self, entity_id: int) -> None:
        row = self._get_row(entity_id)
        with self._guard(f"delete {self.entity_name}"):
            self.db.delete(row)
            self.db.commit()

    def delete_all(self) -> int:
        with self._guard(f"delete all {self.entity_name}"):
            count = self._query().delete(synchronize_session=False)
            self.db.commit()
        return count


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------

class HabitRepository(_SQLRepository):
    model = HabitRow
    entity_name = "Habit"

    def _query(self) -> Query:
        return self.db.query(HabitRow).filter(HabitRow.deleted_at.is_(None))

    def _to_entity(self, row: HabitRow) -> Habit:
        return Habit(
            id=row.id,
            title=row.title,
            description=row.description or "",
            interval=Interval(row.interval),
            target_count=row.target_count,
            created_at=_opt_utc(row.created_at),
        )

    def create(self, habit: Habit) -> Habit:
        row = HabitRow(
            title=habit.title,
            description=habit.description,
            interval=habit.interval,
            target_count=habit.target_count,
        )
        if habit.created_at is not None:
            row.created_at = habit.created_at
        return self._to_entity(self._insert(row, "create habit"))

    def get_all(self, interval: Optional[Interval] = None) -> list[Habit]:
        query = self._query()
        if interval is not None:
            query = query.filter(HabitRow.interval == interval)
        return self._all(query.order_by(HabitRow.id), "list habits")

    def update(self, habit: Habit) -> Habit:
        row = self._get_row(habit.id)
        row.title = habit.title
        row.description = habit.description
        row.interval = habit.interval
        row.target_count = habit.target_count
        return self._to_entity(self._save(row, "update habit"))

    def delete(self, entity_id: int) -> None:
        """Soft-delete the habit and drop its logs."""
        row = self._get_row(entity_id)
        with self._guard("delete habit"):
            self.db.query(HabitLogRow).filter(HabitLogRow.habit_id == entity_id).delete(
                synchronize_session=False
            )
            row.deleted_at = utcnow()
            self.db.commit()

    def delete_all(self) -> int:
        with self._guard("delete all habits"):
            self.db.query(HabitLogRow).delete(synchronize_session=False)
            count = self.db.query(HabitRow).delete(synchronize_session=False)
            self.db.commit()
        return count


class HabitLogRepository(_SQLRepository):
    model = HabitLogRow
    entity_name = "HabitLog"

    def _to_entity(self, row: HabitLogRow) -> HabitLog:
        return HabitLog(
            id=row.id,
            habit_id=row.habit_id,
            title=row.title,
            interval=Interval(row.interval),
            target_count=row.target_count,
            actual_count=row.actual_count,
            ended_at=as_utc(row.ended_at),
            period_key=row.period_key,
            created_at=_opt_utc(row.created_at),
        )

    def create(self, log: HabitLog) -> HabitLog:
        row = HabitLogRow(
            habit_id=log.habit_id,
            title=log.title,
            interval=log.interval,
            target_count=log.target_count,
            actual_count=log.actual_count,
            period_key=log.period_key,
            ended_at=log.ended_at,
        )
        if log.created_at is not None:
            row.created_at = log.created_at
        return self._to_entity(self._insert(row, "create habit log"))

    def update(self, log: HabitLog) -> HabitLog:
        row = self._get_row(log.id)
        row.actual_count = log.actual_count
        row.target_count = log.target_count
        row.ended_at = log.ended_at
        return self._to_entity(self._save(row, "update habit log"))

    def get_for_period(self, habit_id: int, period_key: str) -> Optional[HabitLog]:
        with self._guard("get habit log for period"):
            row = (
                self.db.query(HabitLogRow)
                .filter(HabitLogRow.habit_id == habit_id, HabitLogRow.period_key == period_key)
                .first()
            )
        return self._to_entity(row) if row is not None else None

    def get_by_habit_id(self, habit_id: int) -> list[HabitLog]:
        query = self._newest_first(self._query().filter(HabitLogRow.habit_id == habit_id))
        return self._all(query, "list habit logs")

    def get_all(self, interval: Optional[Interval] = None) -> list[HabitLog]:
        query = self._query()
        if interval is not None:
            query = query.filter(HabitLogRow.interval == interval)
        return self._all(self._newest_first(query), "list habit logs")


# ---------------------------------------------------------------------------
# Focus sessions
# ---------------------------------------------------------------------------

class FocusSessionRepository(_SQLRepository):
    model = FocusSessionRow
    entity_name = "FocusSession"

    def _to_entity(self, row: FocusSessionRow) -> FocusSession:
        return FocusSession(
            id=row.id,
            title=row.title,
            status=FocusStatus(row.status),
            end_time=_opt_utc(row.end_time),
            duration_minutes=row.duration_minutes or 0.0,
            rating=row.rating,
            created_at=_opt_utc(row.created_at),
        )

    def create(self, session: FocusSession) -> FocusSession:
        row = FocusSessionRow(
            title=session.title,
            status=session.status,
            end_time=session.end_time,
            duration_minutes=session.duration_minutes,
            rating=session.rating,
        )
        if session.created_at is not None:
            row.created_at = session.created_at
        return self._to_entity(self._insert(row, "create focus session"))

    def update(self, session: FocusSession) -> FocusSession:
        row = self._get_row(session.id)
        row.title = session.title
        row.status = session.status
        row.end_time = session.end_time
        row.duration_minutes = session.duration_minutes
        row.rating = session.rating
        return self._to_entity(self._save(row, "update focus session"))

    def get_all(self, status: Optional[FocusStatus] = None) -> list[FocusSession]:
        query = self._query()
        if status is not None:
            query = query.filter(FocusSessionRow.status == status)
        return self._all(self._newest_first(query), "list focus sessions")

    def get_active(self) -> list[FocusSession]:
        return self.get_all(FocusStatus.active)


# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------

class IntentRepository(_SQLRepository):
    model = IntentRow
    entity_name = "Intent"

    def _to_entity(self, row: IntentRow) -> Intent:
        return Intent(
            id=row.id,
            name=row.name,
            status=IntentStatus(row.status),
            ended_at=_opt_utc(row.ended_at),
            created_at=_opt_utc(row.created_at),
        )

    def create(self, intent: Intent) -> Intent:
        row = IntentRow(name=intent.name, status=intent.status, ended_at=intent.ended_at)
        if intent.created_at is not None:
            row.created_at = intent.created_at
        return self._to_entity(self._insert(row, "create intent"))

    def update(self, intent: Intent) -> Intent:
        row = self._get_row(intent.id)
        row.name = intent.name
        row.status = intent.status
        row.ended_at = intent.ended_at
        return self._to_entity(self._save(row, "update intent"))

    def get_all(self, status: Optional[IntentStatus] = None) -> list[Intent]:
        query = self._query()
        if status is not None:
            query = query.filter(IntentRow.status == status)
        return self._all(self._newest_first(query), "list intents")

    def get_active(self) -> list[Intent]:
        return self.get_all(IntentStatus.active)


# ---------------------------------------------------------------------------
# Journal
# ---------------------------------------------------------------------------

class JournalRepository(_SQLRepository):
    model = JournalEntryRow
    entity_name = "JournalEntry"

    def _to_entity(self, row: JournalEntryRow) -> JournalEntry:
        return JournalEntry(
            id=row.id,
            title=row.title,
            content=row.content,
            mood=Mood(row.mood),
            created_at=_opt_utc(row.created_at),
        )

    def create(self, entry: JournalEntry) -> JournalEntry:
        row = JournalEntryRow(title=entry.title, content=entry.content, mood=entry.mood)
        if entry.created_at is not None:
            row.created_at = entry.created_at
        return self._to_entity(self._insert(row, "create journal entry"))

    def update(self, entry: JournalEntry) -> JournalEntry:
        row = self._get_row(entry.id)
        row.title = entry.title
        row.content = entry.content
        row.mood = entry.mood
        return self._to_entity(self._save(row, "update journal entry"))

    def get_all(self) -> list[JournalEntry]:
        return self._all(self._newest_first(self._query()), "list journal entries")
