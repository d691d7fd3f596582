from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from sqlalchemy.orm import sessionmaker

from bambai_platform.schedule import TriggerValue

from apps.agent.cron import CronExpression
from apps.agent.db import repo as dbrepo
from apps.agent.db.engine import db_session
from apps.agent.db.models import ScheduledTask, utcnow
from apps.agent.stores import as_utc

logger = logging.getLogger(__name__)

Action = Callable[[str], Any]


@dataclass(frozen=True)
class TaskView:
    task_id: str
    kind: str
    trigger_value: str
    action_name: str
    payload: str
    run_at: Optional[datetime]
    last_fired_at: Optional[datetime]
    fire_count: int
    status: str


def _view(t: ScheduledTask) -> TaskView:
    return TaskView(
        task_id=t.task_id,
        kind=t.kind,
        trigger_value=t.trigger_value,
        action_name=t.action_name,
        payload=t.payload,
        run_at=as_utc(t.run_at),
        last_fired_at=as_utc(t.last_fired_at),
        fire_count=t.fire_count or 0,
        status=t.status,
    )


def _parse_date(value: str) -> Optional[datetime]:
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class SqlAgentContext:
    """
    Agent context backed by the scheduled_tasks table.

    schedule() works out the trigger kind from the value it receives:
    an int is a delay in seconds, an ISO date string is an absolute time,
    any other string must be a 5-field cron expression. Invalid input raises
    ValueError, which the schedule resolver reports back to the model.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Callable[[], datetime] = utcnow,
        profile_id: str = "unknown",
        session_id: str = "unknown",
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.profile_id = profile_id
        self.session_id = session_id

    def schedule(self, when: Union[TriggerValue, datetime], action_name: str, payload: str) -> None:
        now = self.clock()
        if isinstance(when, bool):
            raise ValueError(f"unsupported schedule value {when!r}")
        if isinstance(when, int):
            if when < 0:
                raise ValueError("delay must not be negative")
            kind, value, run_at = "delayed", str(when), now + timedelta(seconds=when)
        elif isinstance(when, datetime):
            kind, value, run_at = "scheduled", when.isoformat(), as_utc(when)
        elif isinstance(when, str):
            run_at = _parse_date(when)
            if run_at is not None:
                kind, value = "scheduled", when
            else:
                CronExpression(when)
                kind, value = "cron", when
        else:
            raise ValueError(f"unsupported schedule value {when!r}")

        with db_session(self.session_factory) as db:
            task = dbrepo.create_task(db, kind, value, action_name, payload, run_at)
            dbrepo.log_event(
                db,
                self.profile_id,
                self.session_id,
                "task_scheduled",
                {"task_id": task.task_id, "kind": kind, "trigger_value": value, "action_name": action_name},
            )
        logger.info("stored %s task %s (%s)", kind, task.task_id, value)

    def list_tasks(self, status: Optional[str] = "active", limit: int = 50) -> List[TaskView]:
        with db_session(self.session_factory) as db:
            return [_view(t) for t in dbrepo.list_tasks(db, status=status, limit=limit)]

    def cancel(self, task_id: str) -> bool:
        with db_session(self.session_factory) as db:
            return dbrepo.cancel_task(db, task_id)

    def fire_due(
        self,
        actions: Mapping[str, Action],
        now: Optional[datetime] = None,
    ) -> List[Tuple[str, Any]]:
        """
        Run every active task whose trigger has come due.

        One-shot tasks (scheduled/delayed) fire once and are marked done.
        Cron tasks fire at most once per matching minute.
        """
        now = now or self.clock()
        minute = now.replace(second=0, microsecond=0)
        fired: List[Tuple[str, Any]] = []

        with db_session(self.session_factory) as db:
            for task in dbrepo.list_tasks(db, status="active", limit=10_000):
                if task.kind == "cron":
                    last = as_utc(task.last_fired_at)
                    if last is not None and last.replace(second=0, microsecond=0) == minute:
                        continue
                    if not CronExpression(task.trigger_value).matches(now):
                        continue
                    done = False
                else:
                    run_at = as_utc(task.run_at)
                    if run_at is None or run_at > now:
                        continue
                    done = True

                action = actions.get(task.action_name)
                if action is None:
                    logger.error("task %s: no action named %s", task.task_id, task.action_name)
                    if done:
                        # a one-shot task would otherwise stay due forever
                        dbrepo.fail_task(db, task)
                    continue

                try:
                    result = action(task.payload)
                except Exception:
                    logger.exception("task %s: action %s failed", task.task_id, task.action_name)
                    result = None
                dbrepo.mark_fired(db, task, now, done=done)
                dbrepo.log_event(
                    db,
                    self.profile_id,
                    self.session_id,
                    "task_fired",
                    {"task_id": task.task_id, "action_name": task.action_name},
                )
                fired.append((task.task_id, result))
        return fired
