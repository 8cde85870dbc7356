from __future__ import annotations

import enum
from typing import Optional, TypeVar

from mindloop.core.errors import ValidationError

E = TypeVar("E", bound=enum.Enum)


def require_text(value: Optional[str], field: str, max_length: Optional[int] = None) -> str:
    """Return `value` stripped, or raise ValidationError if it is empty or too long."""
    stripped = value.strip() if isinstance(value, str) else ""
    if not stripped:
        raise ValidationError(f"{field} cannot be empty", field=field)
    if max_length is not None and len(stripped) > max_length:
        raise ValidationError(
            f"{field} must be at most {max_length} characters", field=field
        )
    return stripped


def parse_choice(enum_cls: type[E], value, field: str) -> E:
    """Coerce a raw string (or enum member) into `enum_cls`."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"invalid {field}: {value!r} (expected one of: {allowed})", field=field
        ) from None
