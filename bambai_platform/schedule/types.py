from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Union

from bambai_platform.errors import InvalidScheduleError

TriggerValue = Union[str, int]


class AgentContext(Protocol):
    """
    Host-side owner of scheduled tasks.

    Stores the task and later invokes `action_name` with `payload` when
    `when` fires. `when` is a date string, a delay in seconds or a cron
    expression.
    """

    def schedule(self, when: TriggerValue, action_name: str, payload: str) -> None: ...


@dataclass(frozen=True)
class NoSchedule:
    kind = "no-schedule"


@dataclass(frozen=True)
class Scheduled:
    date: str
    kind = "scheduled"

    @property
    def value(self) -> str:
        return self.date


@dataclass(frozen=True)
class Delayed:
    delay_in_seconds: int
    kind = "delayed"

    @property
    def value(self) -> int:
        return self.delay_in_seconds


@dataclass(frozen=True)
class Cron:
    expression: str
    kind = "cron"

    @property
    def value(self) -> str:
        return self.expression


ScheduleTrigger = Union[NoSchedule, Scheduled, Delayed, Cron]


def parse_trigger(when: Mapping[str, Any]) -> ScheduleTrigger:
    """Build a trigger from the model's `when` object ({"type": ..., ...})."""
    kind = when.get("type")
    try:
        if kind == "no-schedule":
            return NoSchedule()
        if kind == "scheduled":
            return Scheduled(str(when["date"]))
        if kind == "delayed":
            return Delayed(int(when["delayInSeconds"]))
        if kind == "cron":
            return Cron(str(when["cron"]))
    except KeyError as e:
        raise InvalidScheduleError(
            f"'{kind}' schedule is missing {e}",
            {"type": kind},
        ) from e
    raise InvalidScheduleError(details={"type": kind})
