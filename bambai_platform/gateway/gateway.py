from __future__ import annotations

import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from bambai_platform.errors import (
    AlreadyResolvedError,
    ErrorCode,
    MissingExecutorError,
    ToolError,
    UnknownPendingError,
)
from bambai_platform.gate import ConfirmationGate, Decision, Deferred, DENIED_RESULT
from bambai_platform.registry import ToolContext, ToolRegistry

logger = logging.getLogger(__name__)

# on_event(context, event_type, payload); the host can persist these for audit
EventSink = Callable[[ToolContext, str, Dict[str, Any]], None]


@dataclass
class ToolResult:
    status: str  # ok|error|approval_required|denied
    tool_name: str
    request_id: str
    data: Dict[str, Any]
    error: Optional[Dict[str, Any]]
    meta: Dict[str, Any]

    def to_model(self) -> Dict[str, Any]:
        """What goes back to the model: a result string or a pending id."""
        if self.status == "approval_required":
            return {"pendingConfirmation": self.data["pending_id"]}
        if self.status == "error":
            return {"result": f"Error: {self.error['message']}"}
        return {"result": self.data["result"]}


def _log_event(context: ToolContext, event_type: str, payload: Dict[str, Any]) -> None:
    logger.info("%s %s", event_type, payload)


class ToolGateway:
    """
    Single choke point between the model and the tools.

    Responsibilities:
    - Look up the tool and validate raw arguments (errors propagate)
    - Dispatch through the confirmation gate
    - Turn executor failures into an error envelope instead of a crash
    - Return a standardized ToolResult with request id and latency
    """

    def __init__(
        self,
        registry: ToolRegistry,
        gate: ConfirmationGate,
        on_event: Optional[EventSink] = None,
        max_workers: int = 4,
    ):
        self.registry = registry
        self.gate = gate
        self.on_event = on_event or _log_event
        self.max_workers = max_workers

    def run_tool(
        self,
        tool_name: str,
        input_json: Any,
        context: ToolContext,
    ) -> ToolResult:
        request_id = str(uuid.uuid4())
        t0 = time.time()

        self.on_event(context, "tool_called", {"tool_name": tool_name, "request_id": request_id})

        # ---- Lookup + input validation ----
        try:
            validated = self.registry.validate(tool_name, input_json)
        except ToolError as te:
            self.on_event(
                context,
                "tool_failed",
                {"tool_name": tool_name, "request_id": request_id, "error": te.to_json()},
            )
            raise

        # ---- Dispatch ----
        try:
            outcome = self.gate.dispatch(tool_name, validated, context)
        except Exception as e:
            res = self._from_exception(tool_name, request_id, e, t0)
            self.on_event(context, "tool_failed", {"tool_name": tool_name, "request_id": request_id, "error": res.error})
            return res

        if isinstance(outcome, Deferred):
            pending = outcome.pending
            res = ToolResult(
                status="approval_required",
                tool_name=tool_name,
                request_id=request_id,
                data={
                    "pending_id": pending.pending_id,
                    "proposed_input": pending.arguments,
                    "created_at": pending.created_at.isoformat(),
                },
                error=None,
                meta={"latency_ms": self._ms_since(t0), "source": "gateway"},
            )
            self.on_event(
                context,
                "approval_requested",
                {"tool_name": tool_name, "request_id": request_id, "pending_id": pending.pending_id},
            )
            return res

        res = self._ok(tool_name, request_id, outcome.result, t0)
        self.on_event(context, "tool_succeeded", {"tool_name": tool_name, "request_id": request_id})
        return res

    def run_tools(
        self,
        calls: Sequence[Tuple[str, Any]],
        context: ToolContext,
    ) -> List[Union[ToolResult, ToolError]]:
        """
        Run every tool call of one model turn concurrently.

        Results come back in call order. A structural failure of one call
        (unknown tool, bad arguments) is returned in its slot instead of
        aborting its siblings.
        """
        def one(call: Tuple[str, Any]) -> Union[ToolResult, ToolError]:
            name, args = call
            try:
                return self.run_tool(name, args, context)
            except ToolError as te:
                return te

        if len(calls) <= 1:
            return [one(c) for c in calls]
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(calls))) as pool:
            return list(pool.map(one, calls))

    def resolve(
        self,
        pending_id: str,
        decision: Union[Decision, str],
        context: ToolContext,
    ) -> ToolResult:
        """
        Apply a human decision to a pending confirmation.

        Unknown/already-resolved ids and a missing executor raise. An executor
        that fails after approval produces an error envelope.
        """
        request_id = str(uuid.uuid4())
        t0 = time.time()
        decision = Decision(decision)

        pending = self.gate.store.get(pending_id)
        tool_name = pending.tool_name if pending is not None else "approval.resolve"

        try:
            result = self.gate.resolve(pending_id, decision, context)
        except (UnknownPendingError, AlreadyResolvedError, MissingExecutorError):
            raise
        except Exception as e:
            res = self._from_exception(tool_name, request_id, e, t0)
            self.on_event(context, "tool_failed", {"tool_name": tool_name, "pending_id": pending_id, "error": res.error})
            return res

        if decision is Decision.DENY:
            self.on_event(context, "approval_denied", {"tool_name": tool_name, "pending_id": pending_id})
            return ToolResult(
                status="denied",
                tool_name=tool_name,
                request_id=request_id,
                data={"result": DENIED_RESULT, "pending_id": pending_id},
                error=None,
                meta={"latency_ms": self._ms_since(t0), "source": "gateway"},
            )

        self.on_event(context, "approval_granted", {"tool_name": tool_name, "pending_id": pending_id})
        res = self._ok(tool_name, request_id, result, t0)
        res.data["pending_id"] = pending_id
        self.on_event(context, "tool_succeeded", {"tool_name": tool_name, "pending_id": pending_id})
        return res

    @staticmethod
    def _ms_since(t0: float) -> int:
        return int((time.time() - t0) * 1000)

    def _ok(self, tool_name: str, request_id: str, result: str, t0: float) -> ToolResult:
        return ToolResult(
            status="ok",
            tool_name=tool_name,
            request_id=request_id,
            data={"result": result},
            error=None,
            meta={"latency_ms": self._ms_since(t0), "source": "gateway"},
        )

    def _from_exception(self, tool_name: str, request_id: str, e: Exception, t0: float) -> ToolResult:
        if isinstance(e, ToolError):
            code, message, details = e.code, e.message, e.details
        else:
            logger.exception("tool %s raised", tool_name)
            code, message, details = ErrorCode.INTERNAL_ERROR, "Tool execution failed", {"error": str(e)}
        return self._err(tool_name, request_id, code, message, details, self._ms_since(t0))

    def _err(
        self,
        tool_name: str,
        request_id: str,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]],
        latency_ms: int,
    ) -> ToolResult:
        return ToolResult(
            status="error",
            tool_name=tool_name,
            request_id=request_id,
            data={},
            error={"code": code, "message": message, "details": details or {}},
            meta={"latency_ms": latency_ms, "source": "gateway"},
        )
