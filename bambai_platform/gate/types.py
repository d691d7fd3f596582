from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Union

PendingStatus = Literal["pending", "approved", "denied", "expired"]

# Returned to the model when a human rejects a confirmation-required call.
DENIED_RESULT = "Error: User denied access to tool execution"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Decision(str, Enum):
    APPROVE = "approve"
    DENY = "deny"


@dataclass(frozen=True)
class PendingConfirmation:
    pending_id: str
    tool_name: str
    arguments: Dict[str, Any]
    created_at: datetime = field(default_factory=utcnow)
    profile_id: str = "unknown"
    session_id: str = "unknown"
    status: PendingStatus = "pending"


@dataclass(frozen=True)
class Immediate:
    result: str


@dataclass(frozen=True)
class Deferred:
    pending: PendingConfirmation


DispatchOutcome = Union[Immediate, Deferred]
