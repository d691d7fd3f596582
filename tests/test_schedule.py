from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from bambai_platform.errors import InvalidScheduleError, NoActiveAgentError
from bambai_platform.schedule import (
    ACTION_NAME,
    NOT_A_SCHEDULE,
    Cron,
    Delayed,
    NoSchedule,
    Scheduled,
    get_schedule_prompt,
    parse_trigger,
    resolve_schedule,
)

from conftest import FakeAgent


def test_scheduled_date_is_passed_literally():
    agent = FakeAgent()
    out = resolve_schedule(Scheduled("2025-01-01T00:00:00Z"), "call parents", agent)
    assert agent.calls == [("2025-01-01T00:00:00Z", "executeTask", "call parents")]
    assert "2025-01-01T00:00:00Z" in out
    assert ACTION_NAME == "executeTask"


def test_delayed_uses_seconds():
    agent = FakeAgent()
    out = resolve_schedule(Delayed(30), "remind me", agent)
    assert agent.calls == [(30, "executeTask", "remind me")]
    assert "delayed" in out and "30" in out
    assert out == 'Task scheduled for type "delayed" : 30'


def test_cron_uses_expression():
    agent = FakeAgent()
    resolve_schedule(Cron("0 * * * *"), "hourly report", agent)
    assert agent.calls == [("0 * * * *", "executeTask", "hourly report")]


def test_no_schedule_is_informational():
    agent = FakeAgent()
    assert resolve_schedule(NoSchedule(), "anything", agent) == "Not a valid schedule input"
    assert NOT_A_SCHEDULE == "Not a valid schedule input"
    assert agent.calls == []


def test_missing_agent_raises():
    with pytest.raises(NoActiveAgentError):
        resolve_schedule(Delayed(5), "x", None)


def test_agent_failure_is_reported_not_raised():
    agent = FakeAgent(fail_with=RuntimeError("store unavailable"))
    out = resolve_schedule(Cron("0 8 * * 1-5"), "x", agent)
    assert out == "Error scheduling task: store unavailable"


def test_unknown_variant_raises():
    @dataclass(frozen=True)
    class Lunar:
        kind = "lunar"

    with pytest.raises(InvalidScheduleError):
        resolve_schedule(Lunar(), "x", FakeAgent())


def test_parse_trigger_variants():
    assert parse_trigger({"type": "no-schedule"}) == NoSchedule()
    assert parse_trigger({"type": "scheduled", "date": "2025-01-01T00:00:00Z"}) == Scheduled("2025-01-01T00:00:00Z")
    assert parse_trigger({"type": "delayed", "delayInSeconds": 30}) == Delayed(30)
    assert parse_trigger({"type": "cron", "cron": "0 * * * *"}) == Cron("0 * * * *")


def test_parse_trigger_rejects_unknown_and_incomplete():
    with pytest.raises(InvalidScheduleError):
        parse_trigger({"type": "sometime"})
    with pytest.raises(InvalidScheduleError):
        parse_trigger({"type": "cron"})


def test_schedule_task_tool_through_registry(discovered, context):
    agent = FakeAgent()
    context.agent = agent
    args = discovered.validate(
        "scheduleTask",
        {"description": "send weekly summary", "when": {"type": "cron", "cron": "0 9 * * 1"}},
    )
    out = discovered.get("scheduleTask").capability.fn(args, context)
    assert out == 'Task scheduled for type "cron" : 0 9 * * 1'
    assert agent.calls == [("0 9 * * 1", "executeTask", "send weekly summary")]


def test_schedule_prompt_mentions_now_and_forms():
    now = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
    prompt = get_schedule_prompt(now)
    assert now.isoformat() in prompt
    for form in ('"scheduled"', '"delayed"', '"cron"', '"no-schedule"'):
        assert form in prompt
