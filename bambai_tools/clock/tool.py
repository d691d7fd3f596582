from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bambai_platform.registry import ToolContext

logger = logging.getLogger(__name__)


def _zone(name: str) -> Optional[tzinfo]:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def format_local_time(location: str, default_tz: str, now: datetime) -> str:
    """
    Render `now` for `location`. A location that is an IANA zone name
    ("Africa/Freetown") is used directly; anything else falls back to the
    host's configured zone, then UTC.
    """
    tz = _zone(location) or _zone(default_tz) or timezone.utc
    return now.astimezone(tz).strftime("%H:%M (%Z)")


def get_local_time(input_json: Dict[str, Any], context: ToolContext) -> str:
    location = input_json["location"]
    logger.info("getting local time for %s", location)
    return format_local_time(location, context.timezone, datetime.now(timezone.utc))
