from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from bambai_platform.facade import ERROR_SENTINEL, render_result
from bambai_platform.registry import ToolContext

logger = logging.getLogger(__name__)


def _fetch(context: ToolContext, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    GET `path` and render the body for the model.

    Every signature here is the standard (input_json, context) -> str. None
    of them raise: upstream failures come back as the "error" sentinel.
    """
    if context.api is None:
        logger.error("no API client in context for %s", path)
        return ERROR_SENTINEL
    return render_result(context.api.get(path, params))


def get_user_personal_data(input_json: Dict[str, Any], context: ToolContext) -> str:
    return _fetch(context, "me")


def get_schools(input_json: Dict[str, Any], context: ToolContext) -> str:
    return _fetch(context, "schools", {"page": 0, "perPage": 30})


def get_classes(input_json: Dict[str, Any], context: ToolContext) -> str:
    return _fetch(context, "classes")


def get_subjects(input_json: Dict[str, Any], context: ToolContext) -> str:
    return _fetch(context, "subjects")


def get_students(input_json: Dict[str, Any], context: ToolContext) -> str:
    # ids are passed through as the comma-separated lists the API expects
    return _fetch(
        context,
        "active-students",
        {"schoolIds": input_json.get("schoolIds"), "classIds": input_json.get("classIds")},
    )


def search_student(input_json: Dict[str, Any], context: ToolContext) -> str:
    return _fetch(
        context,
        "students/typeahead",
        {"searchText": input_json["name"], "schoolIds": input_json.get("schoolIds")},
    )


def get_student(input_json: Dict[str, Any], context: ToolContext) -> str:
    return _fetch(context, f"student/{quote(input_json['studentId'], safe='')}")
