from .prompt import get_schedule_prompt
from .resolver import ACTION_NAME, NOT_A_SCHEDULE, resolve_schedule
from .types import (
    AgentContext,
    Cron,
    Delayed,
    NoSchedule,
    Scheduled,
    ScheduleTrigger,
    TriggerValue,
    parse_trigger,
)

__all__ = [
    "ACTION_NAME",
    "AgentContext",
    "Cron",
    "Delayed",
    "NOT_A_SCHEDULE",
    "NoSchedule",
    "ScheduleTrigger",
    "Scheduled",
    "TriggerValue",
    "get_schedule_prompt",
    "parse_trigger",
    "resolve_schedule",
]
