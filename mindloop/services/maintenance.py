"""
Clean slate — wipe all records of one kind, or everything.

Targets: "all", "journal", "habits" (habits + their logs), "focus", "intents".
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from mindloop.core.errors import ValidationError
from mindloop.core.log import get_logger
from mindloop.repositories import (
    FocusSessionRepository,
    HabitRepository,
    IntentRepository,
    JournalRepository,
)

logger = get_logger(__name__)

_TARGETS = {
    "journal": JournalRepository,
    "habits": HabitRepository,
    "focus": FocusSessionRepository,
    "intents": IntentRepository,
}
CLEAN_SLATE_TARGETS = ("all", *_TARGETS)


def clean_slate(db: Session, target: str = "all") -> dict[str, int]:
    """Delete every row of `target`; returns deleted counts keyed by target."""
    if target == "all":
        selected = list(_TARGETS)
    elif target in _TARGETS:
        selected = [target]
    else:
        raise ValidationError(
            f"unknown clean-slate target {target!r} "
            f"(expected one of: {', '.join(CLEAN_SLATE_TARGETS)})",
            field="target",
        )

    deleted = {name: _TARGETS[name](db).delete_all() for name in selected}
    logger.warning("clean_slate", target=target, deleted=deleted)
    return deleted
