"""
Shared pytest fixtures.

Every test gets its own app built by `create_app` over a private in-memory
SQLite database, so no Postgres is required and no state leaks between tests.
"""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from mindloop.core.config import Settings
from mindloop.db.base import Base
from mindloop.main import create_app

# Wednesday of ISO week 2024-W11
FIXED_NOW = datetime(2024, 3, 13, 15, 30, tzinfo=timezone.utc)


@pytest.fixture()
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        APP_ENV="test",
        AUTO_CREATE_TABLES=True,
        _env_file=None,
    )


@pytest.fixture()
def app(settings):
    application = create_app(settings)
    yield application
    Base.metadata.drop_all(bind=application.state.engine)
    application.state.engine.dispose()


@pytest.fixture()
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def now():
    return FIXED_NOW
