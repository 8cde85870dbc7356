"""
Integration tests for app-level endpoints, clean slate and the web pages.
"""
import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from mindloop.core.config import Settings
from mindloop.db.base import get_db
from mindloop.main import create_app
from mindloop.services import focus as focus_service
from mindloop.services import habits as habit_service
from mindloop.services import intents as intent_service
from mindloop.services import journal as journal_service


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok", "db": "ok", "env": "test"}

    def test_health_db_unreachable(self, app, client):
        class _DownSession:
            def execute(self, *args, **kwargs):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        app.dependency_overrides[get_db] = lambda: _DownSession()
        try:
            r = client.get("/health")
        finally:
            app.dependency_overrides.clear()
        assert r.status_code == 503
        assert r.json()["db"] == "unreachable"


class TestAppFactory:
    def test_tables_created_on_startup(self, app):
        tables = set(inspect(app.state.engine).get_table_names())
        assert {"habits", "habit_logs", "focus_sessions", "intents", "journal_entries"} <= tables

    def test_auto_create_can_be_disabled(self):
        application = create_app(Settings(DATABASE_URL="sqlite://", AUTO_CREATE_TABLES=False, _env_file=None))
        try:
            assert inspect(application.state.engine).get_table_names() == []
        finally:
            application.state.engine.dispose()

    def test_postgres_scheme_is_normalised(self):
        s = Settings(DATABASE_URL="postgres://u:p@db:5432/mindloop", _env_file=None)
        assert s.database_url == "postgresql://u:p@db:5432/mindloop"

    def test_cors_origins_list(self):
        s = Settings(CORS_ORIGINS="https://a.example, https://b.example", _env_file=None)
        assert s.cors_origins_list == ["https://a.example", "https://b.example"]


class TestCleanSlate:
    def _seed(self, db):
        habit = habit_service.create_habit(db, "Exercise")
        habit_service.log_habit(db, habit.id)
        focus_service.start_focus(db, "Write")
        intent_service.start_intent(db, "Ship")
        journal_service.create_entry(db, "Day", "text")

    def test_single_target(self, client, db):
        self._seed(db)
        r = client.post("/api/clean-slate", json={"target": "journal"})
        assert r.status_code == 200
        assert r.json()["data"] == {"journal": 1}
        assert journal_service.list_entries(db) == []
        assert len(habit_service.list_habits(db)) == 1

    def test_all(self, client, db):
        self._seed(db)
        r = client.post("/api/clean-slate", json={})
        assert r.json()["data"] == {"journal": 1, "habits": 1, "focus": 1, "intents": 1}
        assert habit_service.list_habits(db) == []
        assert habit_service.list_habit_logs(db) == []
        assert focus_service.list_focus(db) == []
        assert intent_service.list_intents(db) == []

    def test_unknown_target(self, client):
        r = client.post("/api/clean-slate", json={"target": "everything"})
        assert r.status_code == 422
        assert r.json()["details"]["field"] == "target"


class TestWebPages:
    @pytest.mark.parametrize("path", ["/", "/habits", "/focus", "/intents", "/journal", "/summary"])
    def test_pages_render(self, client, path):
        r = client.get(path)
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/html")
        assert "Mindloop" in r.text

    def test_home_greets_configured_user(self, app, client):
        app.state.settings.USER_NAME = "sam"
        assert "Welcome back, sam." in client.get("/").text

    def test_flash_message_is_escaped(self, client):
        r = client.get("/habits", params={"error": "<script>x</script>"})
        assert "&lt;script&gt;" in r.text
        assert "<script>x" not in r.text

    def test_add_and_log_habit(self, client, db):
        r = client.post(
            "/habits",
            data={"title": "Exercise", "description": "", "target_count": "2", "interval": "daily"},
            follow_redirects=False,
        )
        assert r.status_code == 303
        assert r.headers["location"].startswith("/habits?success=")

        habit = habit_service.list_habits(db)[0]
        assert habit.target_count == 2

        client.post(f"/habits/{habit.id}/log")
        page = client.get("/habits")
        assert "1/2" in page.text

    @pytest.mark.parametrize("target_count", ["", "two"])
    def test_bad_target_count_is_flashed(self, client, db, target_count):
        r = client.post(
            "/habits",
            data={"title": "Exercise", "target_count": target_count, "interval": "daily"},
            follow_redirects=False,
        )
        assert r.status_code == 303
        assert "error=" in r.headers["location"]
        assert "target_count must be a whole number" in client.get(r.headers["location"]).text
        assert habit_service.list_habits(db) == []

    def test_empty_rating_is_flashed(self, client, db):
        session = focus_service.start_focus(db, "Write")
        focus_service.end_focus(db, session.id)
        r = client.post(f"/focus/{session.id}/rate", data={"rating": ""}, follow_redirects=False)
        assert r.status_code == 303
        assert "error=" in r.headers["location"]

    def test_domain_error_is_flashed(self, client, db):
        habit = habit_service.create_habit(db, "Exercise")
        r = client.post(f"/habits/{habit.id}/unlog", follow_redirects=False)
        assert r.status_code == 303
        assert "error=" in r.headers["location"]

        page = client.get(r.headers["location"])
        assert "No existing log" in page.text

    def test_focus_forms(self, client, db):
        client.post("/focus", data={"title": "Deep work"})
        session = focus_service.list_focus(db)[0]
        client.post(f"/focus/{session.id}/pause")
        assert focus_service.get_focus(db, session.id).is_paused()
        client.post(f"/focus/{session.id}/resume")
        client.post(f"/focus/{session.id}/end")
        client.post(f"/focus/{session.id}/rate", data={"rating": "7"})
        assert focus_service.get_focus(db, session.id).rating == 7

    def test_intent_and_journal_forms(self, client, db):
        client.post("/intents", data={"name": "Ship"})
        intent = intent_service.list_intents(db)[0]
        client.post(f"/intents/{intent.id}/end")
        assert intent_service.get_intent(db, intent.id).is_done()

        client.post("/journal", data={"title": "Day", "content": "Went well", "mood": "happy"})
        entry = journal_service.list_entries(db)[0]
        assert "Went well" in client.get("/journal").text
        client.post(f"/journal/{entry.id}/delete")
        assert journal_service.list_entries(db) == []

    def test_summary_custom_range(self, client):
        r = client.get("/summary", params={"start": "2024-01-01", "end": "2024-01-07"})
        assert "01-Jan-2024 to 07-Jan-2024" in r.text

    def test_summary_bad_range(self, client):
        r = client.get("/summary", params={"start": "2024-01-07", "end": "2024-01-01"})
        assert r.status_code == 200
        assert "start_date must not be after end_date" in r.text
