from __future__ import annotations

from datetime import datetime


def get_schedule_prompt(now: datetime) -> str:
    """System-prompt section telling the model how to fill `when` for scheduleTask."""
    return f"""\
Scheduling tasks
----------------
The current date and time is {now.isoformat()}.

When the user asks for something to happen later, call scheduleTask with a
`description` of the work and a `when` object of exactly one of these forms:

- {{"type": "scheduled", "date": "<ISO 8601 date-time>"}} for a specific moment,
  e.g. "tomorrow at 9am". Resolve relative dates against the current time.
- {{"type": "delayed", "delayInSeconds": <whole seconds>}} for "in N minutes/hours".
- {{"type": "cron", "cron": "<5-field cron expression>"}} for repeating work,
  e.g. "every weekday at 8am" -> "0 8 * * 1-5".
- {{"type": "no-schedule"}} if the request contains no usable timing.

Do not invent a time the user did not ask for.
"""
