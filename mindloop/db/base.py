"""
Engine / session plumbing.

The engine and session factory are built from an explicit Settings object
by `mindloop.main.create_app` (or the CLI) and stored on `app.state`;
`get_db` pulls the factory from there per request.
"""
from __future__ import annotations

from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mindloop.core.log import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str, echo: bool = False) -> Engine:
    engine_args: dict = {}
    if database_url.startswith("sqlite"):
        engine_args["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty DB
            engine_args["poolclass"] = StaticPool
    else:
        engine_args.update({
            "pool_size": 5,
            "max_overflow": 10,
            "pool_timeout": 30,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
        })
    return create_engine(database_url, echo=echo, **engine_args)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    # Import models so they register with Base.metadata
    import mindloop.models  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.critical("database_init_failed", url=engine.url.render_as_string())
        raise
    logger.info("database_initialized", backend=engine.url.get_backend_name())


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency — yields a database session and closes it after use."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
