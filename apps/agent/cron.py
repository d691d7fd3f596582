from __future__ import annotations

from datetime import datetime
from typing import List, Set, Tuple

# (low, high) for minute, hour, day of month, month, day of week
_BOUNDS: List[Tuple[int, int]] = [(0, 59), (0, 23), (1, 31), (1, 12), (0, 7)]


class CronError(ValueError):
    pass


def _parse_field(spec: str, low: int, high: int) -> Set[int]:
    values: Set[int] = set()
    for part in spec.split(","):
        step = 1
        if "/" in part:
            part, step_s = part.split("/", 1)
            if not step_s.isdigit() or int(step_s) == 0:
                raise CronError(f"bad step '{step_s}'")
            step = int(step_s)

        if part == "*":
            start, end = low, high
        elif "-" in part:
            a, b = part.split("-", 1)
            if not (a.isdigit() and b.isdigit()):
                raise CronError(f"bad range '{part}'")
            start, end = int(a), int(b)
        elif part.isdigit():
            start = int(part)
            end = high if step > 1 else start
        else:
            raise CronError(f"bad field '{part}'")

        if start < low or end > high or start > end:
            raise CronError(f"'{part}' outside {low}-{high}")
        values.update(range(start, end + 1, step))
    return values


class CronExpression:
    """
    Standard 5-field cron: minute hour day-of-month month day-of-week.
    Day-of-week accepts 0 or 7 for Sunday. When both day fields are
    restricted a time matches if either does, as in vixie cron. A field
    starting with "*" (including "*/N") counts as unrestricted.
    """

    def __init__(self, expression: str):
        fields = expression.split()
        if len(fields) != 5:
            raise CronError(f"expected 5 fields, got {len(fields)}: '{expression}'")
        self.expression = expression
        parsed = [_parse_field(f, lo, hi) for f, (lo, hi) in zip(fields, _BOUNDS)]
        self.minutes, self.hours, self.days, self.months, dow = parsed
        self.weekdays = {d % 7 for d in dow}
        self._dom_any = fields[2].startswith("*")
        self._dow_any = fields[4].startswith("*")

    def matches(self, dt: datetime) -> bool:
        if dt.minute not in self.minutes or dt.hour not in self.hours or dt.month not in self.months:
            return False
        dom_ok = dt.day in self.days
        dow_ok = (dt.weekday() + 1) % 7 in self.weekdays
        if self._dom_any or self._dow_any:
            return dom_ok and dow_ok
        return dom_ok or dow_ok
