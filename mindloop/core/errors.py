"""
Custom exception hierarchy for Mindloop.

Rule: every error has a machine-readable `code` string so clients
can branch on it without parsing English messages. The same classes are
raised by the services and rendered by both the API and the CLI.
"""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from mindloop.core.log import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class MindloopException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(MindloopException):
    """Input is malformed: empty text, out-of-range number, unknown enum value."""
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            details={"field": field} if field else {},
        )


class NotFoundError(MindloopException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} {entity_id} not found.",
            details={"entity": entity, "id": entity_id},
        )


class NoHabitLogError(NotFoundError):
    code = "NO_HABIT_LOG"

    def __init__(self, habit_id: int, period_key: str):
        MindloopException.__init__(
            self,
            message="No existing log for this habit in the current period.",
            details={"habit_id": habit_id, "period": period_key},
        )


class InvalidStateError(MindloopException):
    """Input is well-formed but the entity's lifecycle state forbids the action."""
    http_status = status.HTTP_409_CONFLICT
    code = "INVALID_STATE"


class HabitAlreadyCompletedError(InvalidStateError):
    code = "HABIT_ALREADY_COMPLETED"

    def __init__(self, habit_title: str, log: Any):
        self.log = log
        super().__init__(
            message=f"Habit '{habit_title}' already completed for this period.",
            details={
                "period": log.period_key,
                "actual_count": log.actual_count,
                "target_count": log.target_count,
            },
        )


class HabitAlreadyUndoneError(InvalidStateError):
    code = "HABIT_ALREADY_UNDONE"

    def __init__(self, habit_title: str, period_key: str):
        super().__init__(
            message=f"Habit '{habit_title}' is already marked as undone.",
            details={"period": period_key},
        )


class StorageError(MindloopException):
    code = "STORAGE_ERROR"

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Storage failure during {operation}.",
            details={"operation": operation, "reason": reason},
        )


class IntervalInvariantError(MindloopException):
    """A habit reached the logging state machine with an unknown interval."""
    code = "INTERVAL_INVARIANT"

    def __init__(self, interval: Any):
        super().__init__(
            message=f"Unsupported habit interval: {interval!r}.",
            details={"interval": str(interval)},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def mindloop_exception_handler(request: Request, exc: MindloopException) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(
            "request_failed",
            method=request.method,
            path=request.url.path,
            code=exc.code,
            details=exc.details,
        )
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


def _field_path(loc) -> str:
    # ("body", "title") -> "title", ("path", "habit_id") -> "path.habit_id"
    return ".".join(str(part) for part in loc if part != "body")


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Pydantic rejected the request before any handler ran. Answer with the
    same envelope a domain ValidationError gets, listing every bad field.
    """
    envelope = ValidationError("Request validation failed.").to_dict()
    envelope["details"] = {
        "errors": [
            {"field": _field_path(err["loc"]), "message": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ],
    }
    return JSONResponse(status_code=ValidationError.http_status, content=envelope)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", method=request.method, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "An unexpected error occurred.",
            "code": "INTERNAL_ERROR",
        },
    )
