from __future__ import annotations

from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mindloop.core.config import Settings
from mindloop.core.errors import (
    MindloopException,
    mindloop_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from mindloop.core.log import configure_logging
from mindloop.db.base import build_engine, get_db, init_db, make_session_factory
from mindloop.routers import focus as focus_router
from mindloop.routers import habits as habits_router
from mindloop.routers import intents as intents_router
from mindloop.routers import journal as journal_router
from mindloop.routers import summary as summary_router
from mindloop.routers import web as web_router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application from an explicit Settings object.

    Run with `uvicorn --factory mindloop.main:create_app`, or through
    gunicorn (see gunicorn.conf.py).
    """
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

    app = FastAPI(
        title="Mindloop API",
        description=(
            "**Personal productivity tracker**\n\n"
            "Habits with daily/weekly targets, focus sessions, intents, a mood "
            "journal and time-bounded summaries.\n\n"
            "All JSON responses use the `{success, data, message}` envelope; "
            "errors use `{success, error, code, details}`."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    engine = build_engine(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    if settings.AUTO_CREATE_TABLES:
        init_db(engine)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers (most specific first) ---
    app.add_exception_handler(MindloopException, mindloop_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --- Routers ---
    app.include_router(habits_router.router)
    app.include_router(focus_router.router)
    app.include_router(intents_router.router)
    app.include_router(journal_router.router)
    app.include_router(summary_router.router)
    app.include_router(web_router.router)

    @app.get("/health", tags=["health"], summary="Health check")
    def health(db: Session = Depends(get_db)):
        """
        Returns `{"status": "ok", "db": "ok"}` when both the API and the
        database are reachable, HTTP 503 otherwise.
        """
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return JSONResponse(
                status_code=503,
                content={"status": "error", "db": "unreachable"},
            )
        return {"status": "ok", "db": "ok", "env": settings.APP_ENV}

    return app
