from .models import (
    AlreadyResolvedError,
    DuplicateToolError,
    ErrorCode,
    InvalidScheduleError,
    MissingExecutorError,
    NoActiveAgentError,
    SchemaValidationError,
    ToolError,
    ToolRegistryError,
    UnknownPendingError,
    UnknownToolError,
)

__all__ = [
    "AlreadyResolvedError",
    "DuplicateToolError",
    "ErrorCode",
    "InvalidScheduleError",
    "MissingExecutorError",
    "NoActiveAgentError",
    "SchemaValidationError",
    "ToolError",
    "ToolRegistryError",
    "UnknownPendingError",
    "UnknownToolError",
]
