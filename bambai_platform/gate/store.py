from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol

from bambai_platform.errors import AlreadyResolvedError, UnknownPendingError

from .types import PendingConfirmation, PendingStatus, utcnow


class PendingStore(Protocol):
    """
    Where pending confirmations live until a human decides.

    `claim()` is the exactly-once point: it moves a record out of
    "pending" atomically, and every later claim on the same id raises
    AlreadyResolvedError.
    """

    def add(self, pending: PendingConfirmation) -> None: ...

    def get(self, pending_id: str) -> Optional[PendingConfirmation]: ...

    def claim(self, pending_id: str, status: PendingStatus) -> PendingConfirmation: ...

    def expire(self, older_than: datetime) -> int: ...

    def list(self, status: PendingStatus = "pending", limit: int = 20) -> List[PendingConfirmation]: ...


class InMemoryPendingStore:
    """
    Process-local store guarded by a single lock.

    Resolved records (approved, denied, expired) are kept for one sweep
    window after they resolve, so a late second resolve still reports
    AlreadyResolvedError, and are dropped by the next `expire()` after that.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._lock = threading.Lock()
        self._items: Dict[str, PendingConfirmation] = {}
        self._resolved_at: Dict[str, datetime] = {}
        self.clock = clock

    def add(self, pending: PendingConfirmation) -> None:
        with self._lock:
            self._items[pending.pending_id] = pending

    def get(self, pending_id: str) -> Optional[PendingConfirmation]:
        with self._lock:
            return self._items.get(pending_id)

    def claim(self, pending_id: str, status: PendingStatus) -> PendingConfirmation:
        with self._lock:
            current = self._items.get(pending_id)
            if current is None:
                raise UnknownPendingError(pending_id)
            if current.status != "pending":
                raise AlreadyResolvedError(pending_id, current.status)
            claimed = replace(current, status=status)
            self._items[pending_id] = claimed
            self._resolved_at[pending_id] = self.clock()
            return claimed

    def expire(self, older_than: datetime) -> int:
        n = 0
        now = self.clock()
        with self._lock:
            gone = [pid for pid, at in self._resolved_at.items() if at < older_than]
            for pid in gone:
                del self._items[pid]
                del self._resolved_at[pid]

            for pid, p in self._items.items():
                if p.status == "pending" and p.created_at < older_than:
                    self._items[pid] = replace(p, status="expired")
                    self._resolved_at[pid] = now
                    n += 1
        return n

    def list(self, status: PendingStatus = "pending", limit: int = 20) -> List[PendingConfirmation]:
        with self._lock:
            items = [p for p in self._items.values() if p.status == status]
        items.sort(key=lambda p: p.created_at, reverse=True)
        return items[:limit]
