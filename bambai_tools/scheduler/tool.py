from __future__ import annotations

from typing import Any, Dict

from bambai_platform.registry import ToolContext
from bambai_platform.schedule import parse_trigger, resolve_schedule


def schedule_task(input_json: Dict[str, Any], context: ToolContext) -> str:
    """Defer `description` to the agent context instead of doing it now."""
    trigger = parse_trigger(input_json["when"])
    return resolve_schedule(trigger, input_json["description"], context.agent)
