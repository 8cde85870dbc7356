"""
Shared schema primitives used across the API.

Every JSON endpoint answers with one of two envelopes:

  success  {"success": true,  "data": ..., "message": "..."}
  error    {"success": false, "error": "...", "code": "...", "details": {...}}
"""
from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class ErrorDetail(BaseModel):
    """A single field-level validation error."""
    field: str
    message: str
    type: str


class ErrorResponse(BaseModel):
    """Standard error envelope returned for all 4xx/5xx responses."""
    model_config = ConfigDict(from_attributes=True)

    success: bool = False
    error: str
    code: str
    details: Optional[dict[str, Any]] = None


class Envelope(BaseModel, Generic[T]):
    """Standard success envelope."""
    success: bool = True
    data: Optional[T] = None
    message: str = ""


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    404: {"model": ErrorResponse, "description": "Referenced entity does not exist."},
    409: {"model": ErrorResponse, "description": "Action not allowed in the current state."},
    422: {"model": ErrorResponse, "description": "Invalid input."},
}
