"""
Tests for habits: CRUD, the per-period logging state machine and the
/api/habits endpoints.
"""
from datetime import timedelta

import pytest

from mindloop.core.errors import (
    HabitAlreadyCompletedError,
    HabitAlreadyUndoneError,
    NoHabitLogError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from mindloop.domain.habit import DEFAULT_DESCRIPTION, HabitLog, Interval
from mindloop.domain.period import period_for, utcnow
from mindloop.repositories import HabitLogRepository
from mindloop.services import habits as habit_service
from mindloop.services.summary import generate_summary


def _current_log(db, habit, now):
    return HabitLogRepository(db).get_for_period(habit.id, period_for(habit.interval, now).key)


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

class TestHabitCrud:
    def test_create_applies_defaults(self, db):
        habit = habit_service.create_habit(db, "Read")
        assert habit.id is not None
        assert habit.description == DEFAULT_DESCRIPTION
        assert habit.target_count == 1
        assert habit.interval == Interval.daily

    def test_create_strips_title(self, db):
        assert habit_service.create_habit(db, "  Read  ").title == "Read"

    @pytest.mark.parametrize("kwargs", [
        {"title": ""},
        {"title": "   "},
        {"title": "x" * 101},
        {"title": "Read", "target_count": 0},
        {"title": "Read", "target_count": -2},
        {"title": "Read", "interval": "monthly"},
    ])
    def test_create_rejects_invalid_input(self, db, kwargs):
        with pytest.raises(ValidationError):
            habit_service.create_habit(db, **kwargs)

    def test_list_filters_by_interval(self, db):
        habit_service.create_habit(db, "Run", interval="daily")
        habit_service.create_habit(db, "Review", interval="weekly")
        assert [h.title for h in habit_service.list_habits(db)] == ["Run", "Review"]
        assert [h.title for h in habit_service.list_habits(db, "weekly")] == ["Review"]

    def test_update_keeps_omitted_fields(self, db):
        habit = habit_service.create_habit(db, "Run", description="5k", target_count=2)
        updated = habit_service.update_habit(db, habit.id, title="Jog")
        assert updated.title == "Jog"
        assert updated.description == "5k"
        assert updated.target_count == 2

    def test_update_revalidates(self, db):
        habit = habit_service.create_habit(db, "Run")
        with pytest.raises(ValidationError):
            habit_service.update_habit(db, habit.id, target_count=0)

    def test_delete_hides_habit_and_drops_logs(self, db, now):
        habit = habit_service.create_habit(db, "Run")
        habit_service.log_habit(db, habit.id, now=now)
        habit_service.delete_habit(db, habit.id)
        with pytest.raises(NotFoundError):
            habit_service.get_habit(db, habit.id)
        assert HabitLogRepository(db).get_by_habit_id(habit.id) == []

    def test_get_missing_habit(self, db):
        with pytest.raises(NotFoundError) as exc_info:
            habit_service.get_habit(db, 999)
        assert exc_info.value.details == {"entity": "Habit", "id": 999}


# ---------------------------------------------------------------------------
# Logging state machine
# ---------------------------------------------------------------------------

class TestHabitLogging:
    def test_exercise_scenario(self, db, now):
        habit = habit_service.create_habit(db, "Exercise", target_count=1, interval="daily")

        _, log = habit_service.log_habit(db, habit.id, now=now)
        assert log.actual_count == 1
        assert log.is_completed

        with pytest.raises(HabitAlreadyCompletedError):
            habit_service.log_habit(db, habit.id, now=now)
        assert _current_log(db, habit, now).actual_count == 1

        _, log = habit_service.unlog_habit(db, habit.id, now=now)
        assert log.actual_count == 0

    def test_first_log_snapshots_habit(self, db, now):
        habit = habit_service.create_habit(db, "Read", target_count=3)
        _, log = habit_service.log_habit(db, habit.id, now=now)
        assert log.habit_id == habit.id
        assert log.title == "Read"
        assert log.target_count == 3
        assert log.interval == Interval.daily
        assert log.period_key == "2024-03-13"
        assert log.ended_at == period_for(Interval.daily, now).end

    def test_n_logs_complete_and_n_plus_one_is_rejected(self, db, now):
        habit = habit_service.create_habit(db, "Water", target_count=3)
        for expected in (1, 2, 3):
            _, log = habit_service.log_habit(db, habit.id, now=now)
            assert log.actual_count == expected
        assert log.is_completed

        with pytest.raises(HabitAlreadyCompletedError) as exc_info:
            habit_service.log_habit(db, habit.id, now=now)
        assert exc_info.value.log.actual_count == 3
        assert _current_log(db, habit, now).actual_count == 3

    def test_same_period_reuses_one_log(self, db, now):
        habit = habit_service.create_habit(db, "Water", target_count=5)
        habit_service.log_habit(db, habit.id, now=now)
        habit_service.log_habit(db, habit.id, now=now + timedelta(hours=3))
        logs = habit_service.list_habit_logs(db, habit_id=habit.id)
        assert len(logs) == 1
        assert logs[0].actual_count == 2

    def test_log_with_count(self, db, now):
        habit = habit_service.create_habit(db, "Pushups", target_count=3)
        _, log = habit_service.log_habit(db, habit.id, count=2, now=now)
        assert log.actual_count == 2
        assert not log.is_completed

    def test_log_rejects_non_positive_count(self, db, now):
        habit = habit_service.create_habit(db, "Pushups")
        with pytest.raises(ValidationError):
            habit_service.log_habit(db, habit.id, count=0, now=now)
        assert _current_log(db, habit, now) is None

    def test_next_day_opens_new_log(self, db, now):
        habit = habit_service.create_habit(db, "Exercise")
        habit_service.log_habit(db, habit.id, now=now)
        _, log = habit_service.log_habit(db, habit.id, now=now + timedelta(days=1))
        assert log.period_key == "2024-03-14"
        assert log.actual_count == 1
        assert len(habit_service.list_habit_logs(db, habit_id=habit.id)) == 2

    def test_weekly_habit_counts_across_the_week(self, db, now):
        habit = habit_service.create_habit(db, "Long run", target_count=2, interval="weekly")
        monday = now - timedelta(days=2)
        sunday = now + timedelta(days=4)
        habit_service.log_habit(db, habit.id, now=monday)
        _, log = habit_service.log_habit(db, habit.id, now=sunday)
        assert log.period_key == "2024-W11"
        assert log.actual_count == 2
        assert log.is_completed

        _, next_week = habit_service.log_habit(db, habit.id, now=sunday + timedelta(days=1))
        assert next_week.period_key == "2024-W12"
        assert next_week.actual_count == 1

    def test_raised_target_reopens_completed_period(self, db, now):
        habit = habit_service.create_habit(db, "Read", target_count=1)
        habit_service.log_habit(db, habit.id, now=now)
        habit = habit_service.update_habit(db, habit.id, target_count=3)

        [progress] = habit_service.current_progress(db, [habit], now=now)
        assert (progress.actual_count, progress.progress_pct, progress.is_completed) == (1, 33, False)

        _, log = habit_service.log_habit(db, habit.id, now=now)
        assert log.actual_count == 2
        assert log.target_count == 3
        assert not log.is_completed
        assert _current_log(db, habit, now).target_count == 3

    def test_lowered_target_completes_period(self, db, now):
        habit = habit_service.create_habit(db, "Read", target_count=2)
        habit_service.log_habit(db, habit.id, now=now)
        habit_service.update_habit(db, habit.id, target_count=1)

        with pytest.raises(HabitAlreadyCompletedError):
            habit_service.log_habit(db, habit.id, now=now)
        assert _current_log(db, habit, now).actual_count == 1

    def test_duplicate_period_log_is_rejected_by_storage(self, db, now):
        habit = habit_service.create_habit(db, "Exercise")
        _, first = habit_service.log_habit(db, habit.id, now=now)

        with pytest.raises(StorageError) as exc_info:
            HabitLogRepository(db).create(HabitLog(
                habit_id=habit.id,
                title=habit.title,
                interval=habit.interval,
                target_count=habit.target_count,
                actual_count=1,
                ended_at=first.ended_at,
                period_key=first.period_key,
            ))
        assert exc_info.value.details["reason"] == "IntegrityError"
        assert len(habit_service.list_habit_logs(db, habit_id=habit.id)) == 1

    def test_log_missing_habit(self, db, now):
        with pytest.raises(NotFoundError):
            habit_service.log_habit(db, 42, now=now)


class TestHabitUnlogging:
    def test_unlog_without_log(self, db, now):
        habit = habit_service.create_habit(db, "Exercise")
        with pytest.raises(NoHabitLogError) as exc_info:
            habit_service.unlog_habit(db, habit.id, now=now)
        assert exc_info.value.http_status == 404

    def test_unlog_twice(self, db, now):
        habit = habit_service.create_habit(db, "Exercise")
        habit_service.log_habit(db, habit.id, now=now)
        habit_service.unlog_habit(db, habit.id, now=now)
        with pytest.raises(HabitAlreadyUndoneError):
            habit_service.unlog_habit(db, habit.id, now=now)
        assert _current_log(db, habit, now).actual_count == 0

    def test_unlog_resets_partial_progress(self, db, now):
        habit = habit_service.create_habit(db, "Water", target_count=4)
        habit_service.log_habit(db, habit.id, count=3, now=now)
        _, log = habit_service.unlog_habit(db, habit.id, now=now)
        assert log.actual_count == 0

    def test_log_after_unlog_starts_from_zero(self, db, now):
        habit = habit_service.create_habit(db, "Exercise")
        habit_service.log_habit(db, habit.id, now=now)
        habit_service.unlog_habit(db, habit.id, now=now)
        _, log = habit_service.log_habit(db, habit.id, now=now)
        assert log.actual_count == 1
        assert len(habit_service.list_habit_logs(db, habit_id=habit.id)) == 1

    def test_unlog_only_touches_current_period(self, db, now):
        habit = habit_service.create_habit(db, "Exercise")
        habit_service.log_habit(db, habit.id, now=now - timedelta(days=1))
        with pytest.raises(NoHabitLogError):
            habit_service.unlog_habit(db, habit.id, now=now)


class TestHabitProgress:
    def test_current_progress(self, db, now):
        read = habit_service.create_habit(db, "Read", target_count=4)
        run = habit_service.create_habit(db, "Run")
        habit_service.log_habit(db, read.id, now=now)
        progress = habit_service.current_progress(db, [read, run], now=now)
        assert [(p.actual_count, p.progress_pct, p.is_completed) for p in progress] == [
            (1, 25, False),
            (0, 0, False),
        ]

    def test_n_logs_give_full_completion_rate_for_the_day(self, db):
        habit = habit_service.create_habit(db, "Stretch", target_count=3)
        for _ in range(3):
            habit_service.log_habit(db, habit.id)
        current = utcnow()
        report = generate_summary(db, current - timedelta(hours=1), current + timedelta(hours=1))
        assert report.habits[0].completion_rate == 100


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

class TestHabitEndpoints:
    def test_create_and_get(self, client):
        r = client.post("/api/habits", json={"title": "Exercise", "interval": "weekly", "target_count": 3})
        assert r.status_code == 201
        body = r.json()
        assert body["success"] is True
        habit = body["data"]
        assert habit["title"] == "Exercise"
        assert habit["interval"] == "weekly"
        assert habit["description"] == DEFAULT_DESCRIPTION

        r = client.get(f"/api/habits/{habit['id']}")
        assert r.status_code == 200
        assert r.json()["data"]["target_count"] == 3

    def test_create_rejects_blank_title(self, client):
        r = client.post("/api/habits", json={"title": "   "})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_create_rejects_unknown_interval(self, client):
        r = client.post("/api/habits", json={"title": "Run", "interval": "hourly"})
        assert r.status_code == 422

    def test_list_with_interval_filter(self, client):
        client.post("/api/habits", json={"title": "Run"})
        client.post("/api/habits", json={"title": "Review", "interval": "weekly"})
        r = client.get("/api/habits", params={"interval": "weekly"})
        assert [h["title"] for h in r.json()["data"]] == ["Review"]

    def test_update(self, client):
        habit_id = client.post("/api/habits", json={"title": "Run"}).json()["data"]["id"]
        r = client.put(f"/api/habits/{habit_id}", json={"description": "Around the park"})
        assert r.status_code == 200
        assert r.json()["data"]["description"] == "Around the park"
        assert r.json()["data"]["title"] == "Run"

    def test_log_then_already_completed(self, client):
        habit_id = client.post("/api/habits", json={"title": "Exercise"}).json()["data"]["id"]

        r = client.post(f"/api/habits/{habit_id}/log")
        assert r.status_code == 200
        log = r.json()["data"]["log"]
        assert log["actual_count"] == 1
        assert log["is_completed"] is True

        r = client.post(f"/api/habits/{habit_id}/log")
        assert r.status_code == 409
        body = r.json()
        assert body["success"] is False
        assert body["code"] == "HABIT_ALREADY_COMPLETED"
        assert body["details"]["actual_count"] == 1

    def test_log_with_body_count(self, client):
        habit_id = client.post("/api/habits", json={"title": "Water", "target_count": 8}).json()["data"]["id"]
        r = client.post(f"/api/habits/{habit_id}/log", json={"actual_count": 3})
        assert r.json()["data"]["log"]["actual_count"] == 3

    def test_log_rejects_zero_count(self, client):
        habit_id = client.post("/api/habits", json={"title": "Water"}).json()["data"]["id"]
        r = client.post(f"/api/habits/{habit_id}/log", json={"actual_count": 0})
        assert r.status_code == 422

    def test_unlog_flow(self, client):
        habit_id = client.post("/api/habits", json={"title": "Exercise"}).json()["data"]["id"]

        r = client.post(f"/api/habits/{habit_id}/unlog")
        assert r.status_code == 404
        assert r.json()["code"] == "NO_HABIT_LOG"

        client.post(f"/api/habits/{habit_id}/log")
        r = client.post(f"/api/habits/{habit_id}/unlog")
        assert r.status_code == 200
        assert r.json()["data"]["log"]["actual_count"] == 0

        r = client.post(f"/api/habits/{habit_id}/unlog")
        assert r.status_code == 409
        assert r.json()["code"] == "HABIT_ALREADY_UNDONE"

    def test_logs_endpoints(self, client):
        habit_id = client.post("/api/habits", json={"title": "Exercise"}).json()["data"]["id"]
        client.post(f"/api/habits/{habit_id}/log")

        r = client.get(f"/api/habits/{habit_id}/logs")
        assert len(r.json()["data"]) == 1

        r = client.get("/api/habit-logs", params={"interval": "daily"})
        assert len(r.json()["data"]) == 1
        r = client.get("/api/habit-logs", params={"interval": "weekly"})
        assert r.json()["data"] == []

    def test_delete(self, client):
        habit_id = client.post("/api/habits", json={"title": "Exercise"}).json()["data"]["id"]
        assert client.delete(f"/api/habits/{habit_id}").status_code == 200
        r = client.get(f"/api/habits/{habit_id}")
        assert r.status_code == 404
        assert r.json()["code"] == "NOT_FOUND"
