from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session as DBSession

from .models import Event, PendingConfirmationRow, ScheduledTask


def log_event(
    db: DBSession,
    profile_id: str,
    session_id: str,
    event_type: str,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    db.add(Event(
        profile_id=profile_id,
        session_id=session_id,
        event_type=event_type,
        payload_json=payload or {},
    ))


def list_events(db: DBSession, event_type: Optional[str] = None, limit: int = 50) -> List[Event]:
    stmt = select(Event).order_by(Event.ts.desc()).limit(limit)
    if event_type:
        stmt = stmt.where(Event.event_type == event_type)
    return list(db.execute(stmt).scalars().all())


# ---- pending confirmations ----

def create_pending(
    db: DBSession,
    pending_id: str,
    tool_name: str,
    arguments: Dict[str, Any],
    profile_id: str,
    session_id: str,
    created_at: datetime,
) -> PendingConfirmationRow:
    row = PendingConfirmationRow(
        pending_id=pending_id,
        tool_name=tool_name,
        arguments_json=arguments or {},
        profile_id=profile_id,
        session_id=session_id,
        created_at=created_at,
        status="pending",
    )
    db.add(row)
    db.flush()
    return row


def get_pending(db: DBSession, pending_id: str) -> PendingConfirmationRow | None:
    return db.get(PendingConfirmationRow, pending_id)


def claim_pending(db: DBSession, pending_id: str, status: str) -> bool:
    """Move a row out of 'pending'. False means someone else got there first."""
    stmt = (
        update(PendingConfirmationRow)
        .where(PendingConfirmationRow.pending_id == pending_id)
        .where(PendingConfirmationRow.status == "pending")
        .values(status=status, resolved_at=datetime.now(timezone.utc))
    )
    return db.execute(stmt).rowcount == 1


def expire_pending(db: DBSession, older_than: datetime) -> int:
    stmt = (
        update(PendingConfirmationRow)
        .where(PendingConfirmationRow.status == "pending")
        .where(PendingConfirmationRow.created_at < older_than)
        .values(status="expired", resolved_at=datetime.now(timezone.utc))
    )
    return db.execute(stmt).rowcount


def list_pending(db: DBSession, status: str = "pending", limit: int = 20) -> List[PendingConfirmationRow]:
    stmt = (
        select(PendingConfirmationRow)
        .where(PendingConfirmationRow.status == status)
        .order_by(PendingConfirmationRow.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


# ---- scheduled tasks ----

def create_task(
    db: DBSession,
    kind: str,
    trigger_value: str,
    action_name: str,
    payload: str,
    run_at: Optional[datetime],
) -> ScheduledTask:
    task = ScheduledTask(
        kind=kind,
        trigger_value=trigger_value,
        action_name=action_name,
        payload=payload,
        run_at=run_at,
        status="active",
    )
    db.add(task)
    db.flush()  # assigns task_id
    return task


def list_tasks(db: DBSession, status: Optional[str] = "active", limit: int = 50) -> List[ScheduledTask]:
    stmt = select(ScheduledTask).order_by(ScheduledTask.created_at.desc()).limit(limit)
    if status:
        stmt = stmt.where(ScheduledTask.status == status)
    return list(db.execute(stmt).scalars().all())


def get_task(db: DBSession, task_id: str) -> ScheduledTask | None:
    return db.get(ScheduledTask, task_id)


def mark_fired(db: DBSession, task: ScheduledTask, fired_at: datetime, done: bool) -> None:
    task.last_fired_at = fired_at
    task.fire_count = (task.fire_count or 0) + 1
    if done:
        task.status = "done"


def cancel_task(db: DBSession, task_id: str) -> bool:
    task = db.get(ScheduledTask, task_id)
    if task is None or task.status != "active":
        return False
    task.status = "cancelled"
    return True


def fail_task(db: DBSession, task: ScheduledTask) -> None:
    task.status = "failed"
