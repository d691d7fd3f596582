from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Literal, Optional, Union

if TYPE_CHECKING:
    from bambai_platform.facade import DomainApiClient
    from bambai_platform.schedule import AgentContext


ToolMode = Literal["auto_execute", "requires_confirmation"]


@dataclass
class ToolContext:
    """
    Explicit per-call context handed to every executor.

    `agent` and `api` are collaborators owned by the host process. A tool
    that needs one of them and finds it missing must fail on its own terms
    (e.g. NoActiveAgentError), never look it up elsewhere.
    """
    profile_id: str = "unknown"
    session_id: str = "unknown"
    channel: str = "unknown"
    timezone: str = "UTC"
    agent: Optional["AgentContext"] = None
    api: Optional["DomainApiClient"] = None
    extra: Dict[str, Any] = field(default_factory=dict)


# signature: fn(validated_arguments, context) -> result string
Executor = Callable[[Dict[str, Any], ToolContext], str]


@dataclass(frozen=True)
class AutoExecute:
    """Runs as soon as the arguments validate."""
    fn: Executor
    mode: ToolMode = "auto_execute"


@dataclass(frozen=True)
class RequiresConfirmation:
    """Runs only after a human approves the pending call."""
    fn: Executor
    mode: ToolMode = "requires_confirmation"


Capability = Union[AutoExecute, RequiresConfirmation]


@dataclass(frozen=True)
class ToolSpec:
    """Static tool metadata, either discovered from a manifest or registered in code."""
    name: str                              # e.g. "getStudents"
    description: str
    input_schema: Dict[str, Any]           # JSON Schema (draft 2020-12)
    capability: Capability
    handler: str = ""                      # e.g. "bambai_tools.school.tool:get_students"

    @property
    def mode(self) -> ToolMode:
        return self.capability.mode

    @property
    def requires_confirmation(self) -> bool:
        return isinstance(self.capability, RequiresConfirmation)

    def definition(self) -> Dict[str, Any]:
        """Shape handed to the model when advertising tools."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.input_schema,
            "requires_confirmation": self.requires_confirmation,
        }
