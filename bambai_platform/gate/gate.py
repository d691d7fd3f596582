from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Mapping, Optional, Union

from bambai_platform.errors import MissingExecutorError
from bambai_platform.registry import AutoExecute, Executor, ToolContext, ToolRegistry

from .store import InMemoryPendingStore, PendingStore
from .types import (
    DENIED_RESULT,
    Decision,
    Deferred,
    DispatchOutcome,
    Immediate,
    PendingConfirmation,
    utcnow,
)

logger = logging.getLogger(__name__)


class ConfirmationGate:
    """
    Routes validated calls either straight to their executor or to a human.

    - AutoExecute tools run inline and return Immediate(result).
    - RequiresConfirmation tools are parked as a PendingConfirmation and
      return Deferred(pending). Nothing runs until resolve() is called with
      Decision.APPROVE, and then only through the executor table.

    The executor table defaults to the registry's confirmation executors
    at construction time. Passing `executions` overrides it.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        store: Optional[PendingStore] = None,
        executions: Optional[Mapping[str, Executor]] = None,
        pending_ttl_seconds: Optional[int] = 3600,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.registry = registry
        self.store = store if store is not None else InMemoryPendingStore(clock=clock)
        self.executions: Dict[str, Executor] = dict(
            executions if executions is not None else registry.confirmation_executors()
        )
        self.pending_ttl_seconds = pending_ttl_seconds
        self.clock = clock

    def dispatch(
        self,
        tool_name: str,
        validated_arguments: Dict,
        context: ToolContext,
    ) -> DispatchOutcome:
        spec = self.registry.get(tool_name)

        if isinstance(spec.capability, AutoExecute):
            return Immediate(spec.capability.fn(validated_arguments, context))

        self.expire_stale()
        pending = PendingConfirmation(
            pending_id=str(uuid.uuid4()),
            tool_name=tool_name,
            arguments=dict(validated_arguments),
            created_at=self.clock(),
            profile_id=context.profile_id,
            session_id=context.session_id,
        )
        self.store.add(pending)
        logger.info("confirmation requested tool=%s pending_id=%s", tool_name, pending.pending_id)
        return Deferred(pending)

    def resolve(
        self,
        pending_id: str,
        decision: Union[Decision, str],
        context: ToolContext,
    ) -> str:
        decision = Decision(decision)
        self.expire_stale()

        if decision is Decision.DENY:
            pending = self.store.claim(pending_id, "denied")
            logger.info("confirmation denied tool=%s pending_id=%s", pending.tool_name, pending_id)
            return DENIED_RESULT

        pending = self.store.claim(pending_id, "approved")
        logger.info("confirmation approved tool=%s pending_id=%s", pending.tool_name, pending_id)

        fn = self.executions.get(pending.tool_name)
        if fn is None:
            raise MissingExecutorError(pending.tool_name)
        return fn(dict(pending.arguments), context)

    def expire_stale(self) -> int:
        if not self.pending_ttl_seconds:
            return 0
        cutoff = self.clock() - timedelta(seconds=self.pending_ttl_seconds)
        n = self.store.expire(cutoff)
        if n:
            logger.info("expired %d stale pending confirmation(s)", n)
        return n

    def list_pending(self, limit: int = 20) -> List[PendingConfirmation]:
        self.expire_stale()
        return self.store.list("pending", limit=limit)
