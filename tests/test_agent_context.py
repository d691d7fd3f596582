from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from bambai_platform.schedule import Cron, Delayed, Scheduled, resolve_schedule

from apps.agent.context import SqlAgentContext


@pytest.fixture
def agent(session_factory, clock):
    return SqlAgentContext(session_factory, clock=clock)


def test_schedule_kinds(agent, clock):
    agent.schedule(30, "executeTask", "in thirty")
    agent.schedule("2026-03-02T08:00:00Z", "executeTask", "tomorrow")
    agent.schedule("*/15 * * * *", "executeTask", "quarter hourly")

    tasks = {t.payload: t for t in agent.list_tasks()}
    assert tasks["in thirty"].kind == "delayed"
    assert tasks["in thirty"].run_at == clock() + timedelta(seconds=30)
    assert tasks["tomorrow"].kind == "scheduled"
    assert tasks["tomorrow"].trigger_value == "2026-03-02T08:00:00Z"
    assert tasks["tomorrow"].run_at == datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
    assert tasks["quarter hourly"].kind == "cron"
    assert tasks["quarter hourly"].run_at is None


def test_invalid_cron_raises_value_error(agent):
    with pytest.raises(ValueError):
        agent.schedule("every tuesday", "executeTask", "x")
    assert agent.list_tasks() == []


def test_resolver_reports_context_failure(agent):
    out = resolve_schedule(Cron("61 * * * *"), "bad minute", agent)
    assert out.startswith("Error scheduling task:")
    assert agent.list_tasks() == []


def test_resolver_stores_task(agent):
    out = resolve_schedule(Delayed(30), "remind", agent)
    assert out == 'Task scheduled for type "delayed" : 30'
    [task] = agent.list_tasks()
    assert (task.action_name, task.payload, task.trigger_value) == ("executeTask", "remind", "30")


def test_fire_due_one_shot(agent, clock):
    resolve_schedule(Delayed(60), "later", agent)
    resolve_schedule(Scheduled("2026-03-01T11:00:00Z"), "already due", agent)
    ran = []

    fired = agent.fire_due({"executeTask": ran.append})
    assert ran == ["already due"]
    assert len(fired) == 1

    clock.advance(61)
    agent.fire_due({"executeTask": ran.append})
    assert ran == ["already due", "later"]
    assert agent.list_tasks() == []
    assert {t.status for t in agent.list_tasks(status=None)} == {"done"}


def test_fire_due_cron_once_per_minute(agent, clock):
    resolve_schedule(Cron("0 * * * *"), "hourly", agent)
    ran = []

    # the fake clock starts at 12:00 UTC
    agent.fire_due({"executeTask": ran.append})
    agent.fire_due({"executeTask": ran.append}, now=clock() + timedelta(seconds=30))
    assert ran == ["hourly"]

    agent.fire_due({"executeTask": ran.append}, now=clock() + timedelta(minutes=30))
    assert ran == ["hourly"]

    agent.fire_due({"executeTask": ran.append}, now=clock() + timedelta(hours=1))
    assert ran == ["hourly", "hourly"]
    [task] = agent.list_tasks()
    assert task.status == "active" and task.fire_count == 2


def test_failing_action_does_not_stop_others(agent):
    resolve_schedule(Scheduled("2026-03-01T10:00:00Z"), "a", agent)
    resolve_schedule(Scheduled("2026-03-01T10:00:00Z"), "b", agent)
    ran = []

    def action(payload):
        if payload == "a":
            raise RuntimeError("nope")
        ran.append(payload)

    assert len(agent.fire_due({"executeTask": action})) == 2
    assert ran == ["b"]


def test_cancel(agent):
    resolve_schedule(Delayed(10), "x", agent)
    [task] = agent.list_tasks()
    assert agent.cancel(task.task_id) is True
    assert agent.cancel(task.task_id) is False
    assert agent.fire_due({"executeTask": lambda p: None}, now=datetime(2030, 1, 1, tzinfo=timezone.utc)) == []


def test_one_shot_task_without_action_fails_once(agent, caplog):
    resolve_schedule(Scheduled("2026-03-01T10:00:00Z"), "orphan", agent)

    assert agent.fire_due({}) == []
    assert agent.fire_due({}) == []

    assert agent.list_tasks() == []
    [task] = agent.list_tasks(status="failed")
    assert task.fire_count == 0
    assert sum("no action named" in r.getMessage() for r in caplog.records) == 1
