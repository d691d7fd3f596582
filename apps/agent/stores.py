from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from bambai_platform.errors import AlreadyResolvedError, UnknownPendingError
from bambai_platform.gate import PendingConfirmation, PendingStatus
from bambai_platform.registry import ToolContext

from apps.agent.db import repo as dbrepo
from apps.agent.db.engine import db_session
from apps.agent.db.models import PendingConfirmationRow


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything we write is UTC
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)


def _to_pending(row: PendingConfirmationRow) -> PendingConfirmation:
    return PendingConfirmation(
        pending_id=row.pending_id,
        tool_name=row.tool_name,
        arguments=dict(row.arguments_json or {}),
        created_at=as_utc(row.created_at),
        profile_id=row.profile_id,
        session_id=row.session_id,
        status=row.status,
    )


class SqlPendingStore:
    """
    Pending confirmations in the agent database, so `assistant run` and
    `assistant approve` can be separate processes.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def add(self, pending: PendingConfirmation) -> None:
        with db_session(self.session_factory) as db:
            dbrepo.create_pending(
                db,
                pending_id=pending.pending_id,
                tool_name=pending.tool_name,
                arguments=pending.arguments,
                profile_id=pending.profile_id,
                session_id=pending.session_id,
                created_at=pending.created_at,
            )

    def get(self, pending_id: str) -> Optional[PendingConfirmation]:
        with db_session(self.session_factory) as db:
            row = dbrepo.get_pending(db, pending_id)
            return _to_pending(row) if row is not None else None

    def claim(self, pending_id: str, status: PendingStatus) -> PendingConfirmation:
        with db_session(self.session_factory) as db:
            claimed = dbrepo.claim_pending(db, pending_id, status)
            row = dbrepo.get_pending(db, pending_id)
            if row is None:
                raise UnknownPendingError(pending_id)
            if not claimed:
                raise AlreadyResolvedError(pending_id, row.status)
            db.refresh(row)
            return _to_pending(row)

    def expire(self, older_than: datetime) -> int:
        with db_session(self.session_factory) as db:
            return dbrepo.expire_pending(db, older_than)

    def list(self, status: PendingStatus = "pending", limit: int = 20) -> List[PendingConfirmation]:
        with db_session(self.session_factory) as db:
            return [_to_pending(r) for r in dbrepo.list_pending(db, status=status, limit=limit)]


class SqlEventSink:
    """Gateway on_event hook that writes the audit trail to the events table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def __call__(self, context: ToolContext, event_type: str, payload: Dict[str, Any]) -> None:
        with db_session(self.session_factory) as db:
            dbrepo.log_event(db, context.profile_id, context.session_id, event_type, payload)
