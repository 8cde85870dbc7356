"""
Tests for focus sessions: lifecycle transitions, rating rules and the
/api/focus endpoints.
"""
from datetime import timedelta

import pytest

from mindloop.core.errors import InvalidStateError, NotFoundError, ValidationError
from mindloop.domain.focus import UNRATED, FocusSession, FocusStatus
from mindloop.services import focus as focus_service


# ---------------------------------------------------------------------------
# Domain
# ---------------------------------------------------------------------------

class TestFocusSessionRecord:
    def test_start_defaults(self):
        s = FocusSession.start("  Write  ")
        assert s.title == "Write"
        assert s.status == FocusStatus.active
        assert s.rating == UNRATED
        assert s.duration_minutes == 0.0

    def test_start_requires_title(self):
        with pytest.raises(ValidationError):
            FocusSession.start("   ")

    def test_transitions_report_whether_they_applied(self, now):
        s = FocusSession(title="Write", created_at=now)
        assert s.resume() is False
        assert s.pause() is True
        assert s.pause() is False
        assert s.end(now) is False
        assert s.resume() is True
        assert s.end(now + timedelta(minutes=25)) is True
        assert s.duration_minutes == pytest.approx(25)
        assert s.end(now + timedelta(hours=1)) is False
        assert s.duration_minutes == pytest.approx(25)

    def test_current_duration_of_running_session(self, now):
        s = FocusSession(title="Write", created_at=now)
        assert s.current_duration(now + timedelta(minutes=12)) == pytest.approx(12)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class TestFocusLifecycle:
    def test_write_scenario(self, db):
        session = focus_service.start_focus(db, "Write")
        ended = focus_service.end_focus(db, session.id)
        assert ended.status == FocusStatus.ended
        assert ended.end_time is not None
        assert ended.duration_minutes == pytest.approx(0, abs=0.5)

        with pytest.raises(ValidationError):
            focus_service.rate_focus(db, session.id, 11)

        rated = focus_service.rate_focus(db, session.id, 8)
        assert rated.rating == 8

    def test_end_uses_given_time(self, db):
        session = focus_service.start_focus(db, "Deep work")
        ended = focus_service.end_focus(db, session.id, now=session.created_at + timedelta(minutes=50))
        assert ended.duration_minutes == pytest.approx(50)

    def test_end_twice_does_not_mutate(self, db):
        session = focus_service.start_focus(db, "Write")
        first = focus_service.end_focus(db, session.id, now=session.created_at + timedelta(minutes=10))

        with pytest.raises(InvalidStateError):
            focus_service.end_focus(db, session.id, now=session.created_at + timedelta(minutes=90))

        stored = focus_service.get_focus(db, session.id)
        assert stored.status == FocusStatus.ended
        assert stored.duration_minutes == pytest.approx(first.duration_minutes)
        assert stored.end_time == first.end_time

    def test_paused_session_cannot_be_ended(self, db):
        session = focus_service.start_focus(db, "Write")
        focus_service.pause_focus(db, session.id)
        with pytest.raises(InvalidStateError):
            focus_service.end_focus(db, session.id)
        stored = focus_service.get_focus(db, session.id)
        assert stored.status == FocusStatus.paused
        assert stored.end_time is None

    def test_pause_resume_round_trip(self, db):
        session = focus_service.start_focus(db, "Write")
        assert focus_service.pause_focus(db, session.id).status == FocusStatus.paused
        assert focus_service.resume_focus(db, session.id).status == FocusStatus.active

    def test_illegal_pause_and_resume_are_no_ops(self, db):
        session = focus_service.start_focus(db, "Write")
        assert focus_service.resume_focus(db, session.id).status == FocusStatus.active
        focus_service.end_focus(db, session.id)
        assert focus_service.pause_focus(db, session.id).status == FocusStatus.ended
        assert focus_service.resume_focus(db, session.id).status == FocusStatus.ended

    @pytest.mark.parametrize("rating", range(0, 11))
    def test_every_rating_in_range_is_accepted(self, db, rating):
        session = focus_service.start_focus(db, "Write")
        focus_service.end_focus(db, session.id)
        assert focus_service.rate_focus(db, session.id, rating).rating == rating

    @pytest.mark.parametrize("rating", [-1, 11, 100])
    def test_out_of_range_rating_is_rejected(self, db, rating):
        session = focus_service.start_focus(db, "Write")
        focus_service.end_focus(db, session.id)
        with pytest.raises(ValidationError):
            focus_service.rate_focus(db, session.id, rating)
        assert focus_service.get_focus(db, session.id).rating == UNRATED

    def test_rating_requires_ended_session(self, db):
        session = focus_service.start_focus(db, "Write")
        with pytest.raises(InvalidStateError):
            focus_service.rate_focus(db, session.id, 5)

    def test_list_by_status(self, db):
        a = focus_service.start_focus(db, "A")
        focus_service.start_focus(db, "B")
        focus_service.end_focus(db, a.id)
        assert [s.title for s in focus_service.list_focus(db, "ended")] == ["A"]
        assert [s.title for s in focus_service.list_focus(db, "active")] == ["B"]
        with pytest.raises(ValidationError):
            focus_service.list_focus(db, "sleeping")

    def test_delete(self, db):
        session = focus_service.start_focus(db, "Write")
        focus_service.delete_focus(db, session.id)
        with pytest.raises(NotFoundError):
            focus_service.get_focus(db, session.id)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

class TestFocusEndpoints:
    def _start(self, client, title="Write"):
        r = client.post("/api/focus", json={"title": title})
        assert r.status_code == 201
        return r.json()["data"]

    def test_start_and_get(self, client):
        session = self._start(client)
        assert session["status"] == "active"
        assert session["rating"] == -1

        r = client.get(f"/api/focus/{session['id']}")
        assert r.json()["data"]["title"] == "Write"

    def test_full_lifecycle(self, client):
        sid = self._start(client)["id"]
        assert client.post(f"/api/focus/{sid}/pause").json()["data"]["status"] == "paused"
        assert client.post(f"/api/focus/{sid}/end").status_code == 409
        assert client.post(f"/api/focus/{sid}/resume").json()["data"]["status"] == "active"

        r = client.post(f"/api/focus/{sid}/end")
        assert r.status_code == 200
        assert r.json()["data"]["status"] == "ended"

        r = client.post(f"/api/focus/{sid}/rate", json={"rating": 8})
        assert r.json()["data"]["rating"] == 8

    def test_rate_out_of_range(self, client):
        sid = self._start(client)["id"]
        client.post(f"/api/focus/{sid}/end")
        r = client.post(f"/api/focus/{sid}/rate", json={"rating": 11})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"
        assert r.json()["details"]["field"] == "rating"

    def test_rate_active_session(self, client):
        sid = self._start(client)["id"]
        r = client.post(f"/api/focus/{sid}/rate", json={"rating": 5})
        assert r.status_code == 409
        assert r.json()["code"] == "INVALID_STATE"

    def test_list_filter(self, client):
        sid = self._start(client, "A")["id"]
        self._start(client, "B")
        client.post(f"/api/focus/{sid}/end")
        r = client.get("/api/focus", params={"status": "active"})
        assert [s["title"] for s in r.json()["data"]] == ["B"]

    def test_unknown_session(self, client):
        r = client.post("/api/focus/404/end")
        assert r.status_code == 404

    def test_delete(self, client):
        sid = self._start(client)["id"]
        assert client.delete(f"/api/focus/{sid}").status_code == 200
        assert client.get(f"/api/focus/{sid}").status_code == 404
