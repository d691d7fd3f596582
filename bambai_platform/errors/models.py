from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


class ErrorCode:
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE = "DUPLICATE"
    REGISTRY_ERROR = "REGISTRY_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_EXECUTOR = "MISSING_EXECUTOR"
    ALREADY_RESOLVED = "ALREADY_RESOLVED"
    INVALID_SCHEDULE = "INVALID_SCHEDULE"
    NO_ACTIVE_AGENT = "NO_ACTIVE_AGENT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class ToolError(Exception):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message

    def to_json(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details or {},
        }


class ToolRegistryError(ToolError):
    """Broken manifest, handler or registry wiring."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.REGISTRY_ERROR, message, details)


class DuplicateToolError(ToolError):
    def __init__(self, tool_name: str):
        super().__init__(
            ErrorCode.DUPLICATE,
            f"Duplicate tool name '{tool_name}'",
            {"tool_name": tool_name},
        )


class UnknownToolError(ToolError):
    def __init__(self, tool_name: str):
        super().__init__(
            ErrorCode.NOT_FOUND,
            f"Unknown tool '{tool_name}'",
            {"tool_name": tool_name},
        )


class SchemaValidationError(ToolError):
    """
    Raw model arguments did not match the tool's parameter schema.

    `field` is the dotted path of the offending argument. For a missing
    required property it is the property name itself, not its parent.
    """

    def __init__(self, field: str, reason: str, tool_name: Optional[str] = None):
        super().__init__(
            ErrorCode.VALIDATION_ERROR,
            f"Invalid argument '{field}': {reason}" if field else f"Invalid arguments: {reason}",
            {"field": field, "reason": reason, "tool_name": tool_name},
        )

    @property
    def field(self) -> str:
        return self.details["field"]

    @property
    def reason(self) -> str:
        return self.details["reason"]


class MissingExecutorError(ToolError):
    def __init__(self, tool_name: str):
        super().__init__(
            ErrorCode.MISSING_EXECUTOR,
            f"No confirmation executor registered for '{tool_name}'",
            {"tool_name": tool_name},
        )


class UnknownPendingError(ToolError):
    def __init__(self, pending_id: str):
        super().__init__(
            ErrorCode.NOT_FOUND,
            "Pending confirmation not found",
            {"pending_id": pending_id},
        )


class AlreadyResolvedError(ToolError):
    def __init__(self, pending_id: str, status: str):
        super().__init__(
            ErrorCode.ALREADY_RESOLVED,
            f"Pending confirmation is already {status}",
            {"pending_id": pending_id, "status": status},
        )


class InvalidScheduleError(ToolError):
    def __init__(self, message: str = "not a valid schedule input", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.INVALID_SCHEDULE, message, details)


class NoActiveAgentError(ToolError):
    def __init__(self):
        super().__init__(ErrorCode.NO_ACTIVE_AGENT, "No agent found")
