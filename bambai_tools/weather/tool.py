from __future__ import annotations

import logging
from typing import Any, Dict

from bambai_platform.registry import ToolContext

logger = logging.getLogger(__name__)


def get_weather_information(input_json: Dict[str, Any], context: ToolContext) -> str:
    """
    Confirmation-required: only reached after a human approves the call.
    Stub implementation; there is no weather provider behind it.
    """
    city = input_json["city"]
    logger.info("getting weather information for %s", city)
    return f"The weather in {city} is sunny"
