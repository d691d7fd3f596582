from .gate import ConfirmationGate
from .store import InMemoryPendingStore, PendingStore
from .types import (
    DENIED_RESULT,
    Decision,
    Deferred,
    DispatchOutcome,
    Immediate,
    PendingConfirmation,
    PendingStatus,
)

__all__ = [
    "ConfirmationGate",
    "DENIED_RESULT",
    "Decision",
    "Deferred",
    "DispatchOutcome",
    "Immediate",
    "InMemoryPendingStore",
    "PendingConfirmation",
    "PendingStatus",
    "PendingStore",
]
