from __future__ import annotations

import threading

import pytest

from bambai_platform.errors import AlreadyResolvedError, MissingExecutorError, UnknownPendingError
from bambai_platform.gate import DENIED_RESULT, ConfirmationGate, Decision, Deferred, Immediate, InMemoryPendingStore


def test_auto_tool_runs_immediately(registry, context, auto_spy):
    gate = ConfirmationGate(registry)
    outcome = gate.dispatch("echoCity", {"city": "Bo"}, context)
    assert outcome == Immediate("auto-result")
    assert auto_spy.calls == [{"city": "Bo"}]


def test_confirm_tool_is_deferred_without_running(registry, context, confirm_spy):
    gate = ConfirmationGate(registry)
    outcome = gate.dispatch("guardedCity", {"city": "Kenema"}, context)
    assert isinstance(outcome, Deferred)
    assert outcome.pending.tool_name == "guardedCity"
    assert outcome.pending.arguments == {"city": "Kenema"}
    assert outcome.pending.profile_id == "p1"
    assert confirm_spy.calls == []
    assert [p.pending_id for p in gate.list_pending()] == [outcome.pending.pending_id]


def test_approve_runs_executor_once(registry, context, confirm_spy):
    gate = ConfirmationGate(registry)
    pending = gate.dispatch("guardedCity", {"city": "Kenema"}, context).pending

    assert gate.resolve(pending.pending_id, Decision.APPROVE, context) == "confirmed-result"
    with pytest.raises(AlreadyResolvedError) as ei:
        gate.resolve(pending.pending_id, Decision.APPROVE, context)
    assert ei.value.details["status"] == "approved"
    assert confirm_spy.calls == [{"city": "Kenema"}]
    assert gate.list_pending() == []


def test_deny_returns_rejection_and_never_runs(registry, context, confirm_spy):
    gate = ConfirmationGate(registry)
    pending = gate.dispatch("guardedCity", {"city": "Makeni"}, context).pending

    assert gate.resolve(pending.pending_id, "deny", context) == DENIED_RESULT
    with pytest.raises(AlreadyResolvedError):
        gate.resolve(pending.pending_id, Decision.APPROVE, context)
    assert confirm_spy.calls == []


def test_approve_without_executor_entry(registry, context):
    gate = ConfirmationGate(registry, executions={})
    pending = gate.dispatch("guardedCity", {"city": "Bo"}, context).pending
    with pytest.raises(MissingExecutorError):
        gate.resolve(pending.pending_id, Decision.APPROVE, context)
    # consumed even though it could not run
    with pytest.raises(AlreadyResolvedError):
        gate.resolve(pending.pending_id, Decision.APPROVE, context)


def test_unknown_pending_id(registry, context):
    gate = ConfirmationGate(registry)
    with pytest.raises(UnknownPendingError):
        gate.resolve("missing", Decision.APPROVE, context)


def test_stale_pending_expires(registry, context, clock, confirm_spy):
    gate = ConfirmationGate(registry, pending_ttl_seconds=60, clock=clock)
    pending = gate.dispatch("guardedCity", {"city": "Bo"}, context).pending

    clock.advance(61)
    assert gate.list_pending() == []
    with pytest.raises(AlreadyResolvedError) as ei:
        gate.resolve(pending.pending_id, Decision.APPROVE, context)
    assert ei.value.details["status"] == "expired"
    assert confirm_spy.calls == []


def test_ttl_disabled_keeps_pending(registry, context, clock):
    gate = ConfirmationGate(registry, pending_ttl_seconds=None, clock=clock)
    gate.dispatch("guardedCity", {"city": "Bo"}, context)
    clock.advance(10 ** 6)
    assert len(gate.list_pending()) == 1


def test_concurrent_approvals_run_once(registry, context, confirm_spy):
    gate = ConfirmationGate(registry, store=InMemoryPendingStore())
    pending = gate.dispatch("guardedCity", {"city": "Bo"}, context).pending

    outcomes = []
    barrier = threading.Barrier(8)

    def approve():
        barrier.wait()
        try:
            outcomes.append(gate.resolve(pending.pending_id, Decision.APPROVE, context))
        except AlreadyResolvedError as e:
            outcomes.append(e)

    threads = [threading.Thread(target=approve) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("confirmed-result") == 1
    assert sum(isinstance(o, AlreadyResolvedError) for o in outcomes) == 7
    assert len(confirm_spy.calls) == 1


def test_resolved_entries_are_dropped_after_a_window(registry, context, clock):
    gate = ConfirmationGate(registry, pending_ttl_seconds=60, clock=clock)
    for _ in range(500):
        pending = gate.dispatch("guardedCity", {"city": "Bo"}, context).pending
        gate.resolve(pending.pending_id, Decision.DENY, context)
        clock.advance(120)

    gate.expire_stale()
    assert gate.store.get(pending.pending_id) is None
    assert len(gate.store._items) == 0


def test_resolved_entry_still_reported_within_window(registry, context, clock):
    gate = ConfirmationGate(registry, pending_ttl_seconds=60, clock=clock)
    pending = gate.dispatch("guardedCity", {"city": "Bo"}, context).pending
    gate.resolve(pending.pending_id, Decision.DENY, context)

    clock.advance(30)
    with pytest.raises(AlreadyResolvedError):
        gate.resolve(pending.pending_id, Decision.APPROVE, context)

    clock.advance(61)
    with pytest.raises(UnknownPendingError):
        gate.resolve(pending.pending_id, Decision.APPROVE, context)
