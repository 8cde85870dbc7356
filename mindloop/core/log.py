"""
Process-wide logging setup on structlog.

Modules log through `logger = get_logger(__name__)` with an event name and
key/value context:

    logger.info("habit_logged", habit_id=3, period="2024-W11", progress="2/3")

`configure_logging` is called once by whichever entry point owns the
process (API factory or CLI). Records from plain stdlib loggers
(SQLAlchemy, uvicorn, alembic) go through the same renderer.
"""
import logging
import sys
from typing import Optional

import structlog

_HANDLER_NAME = "mindloop"

# Shared by structlog's own loggers and foreign stdlib records
_PRE_CHAIN = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
]


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure structlog and route the root stdlib logger through it.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_logs: one JSON object per line instead of the console format
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_PRE_CHAIN,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=_PRE_CHAIN,
    ))

    root = logging.getLogger()
    # Replace only our own handler; test runners attach theirs to root too
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # SQL echo is controlled separately through the engine
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)
