from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from mindloop.core.errors import InvalidStateError
from mindloop.domain.period import as_utc, utcnow
from mindloop.domain.validation import require_text


class IntentStatus(str, enum.Enum):
    active = "active"
    done = "done"


@dataclass
class Intent:
    name: str
    status: IntentStatus = IntentStatus.active
    ended_at: Optional[datetime] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def start(cls, name: str) -> "Intent":
        return cls(name=require_text(name, "name"))

    def is_active(self) -> bool:
        return self.status == IntentStatus.active

    def is_done(self) -> bool:
        return self.status == IntentStatus.done

    def end(self, now: Optional[datetime] = None) -> None:
        # done is terminal
        if self.is_done():
            raise InvalidStateError(
                f"Intent '{self.name}' is already done.",
                details={"id": self.id, "status": self.status.value},
            )
        self.status = IntentStatus.done
        self.ended_at = as_utc(now or utcnow())
