from .registry import ToolRegistry, check_executor_table
from .types import AutoExecute, Capability, Executor, RequiresConfirmation, ToolContext, ToolMode, ToolSpec

__all__ = [
    "AutoExecute",
    "Capability",
    "Executor",
    "RequiresConfirmation",
    "ToolContext",
    "ToolMode",
    "ToolRegistry",
    "ToolSpec",
    "check_executor_table",
]
