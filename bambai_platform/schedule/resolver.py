from __future__ import annotations

import logging
from typing import Optional

from bambai_platform.errors import InvalidScheduleError, NoActiveAgentError

from .types import AgentContext, Cron, Delayed, NoSchedule, Scheduled, ScheduleTrigger

logger = logging.getLogger(__name__)

ACTION_NAME = "executeTask"
NOT_A_SCHEDULE = "Not a valid schedule input"


def resolve_schedule(
    trigger: ScheduleTrigger,
    description: str,
    agent: Optional[AgentContext],
) -> str:
    """
    Hand a trigger to the agent context and describe the outcome for the model.

    A missing agent is a wiring bug and raises. A failing agent.schedule()
    does not: the model gets "Error scheduling task: ..." as a normal result.
    """
    if agent is None:
        raise NoActiveAgentError()

    if isinstance(trigger, NoSchedule):
        return NOT_A_SCHEDULE

    if isinstance(trigger, (Scheduled, Delayed, Cron)):
        value = trigger.value
    else:
        raise InvalidScheduleError(details={"trigger": repr(trigger)})

    try:
        agent.schedule(value, ACTION_NAME, description)
    except Exception as e:
        logger.exception("error scheduling task kind=%s value=%r", trigger.kind, value)
        return f"Error scheduling task: {e}"

    logger.info("task scheduled kind=%s value=%r", trigger.kind, value)
    return f'Task scheduled for type "{trigger.kind}" : {value}'
