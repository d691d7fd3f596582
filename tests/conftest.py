from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from bambai_platform.facade import DomainApiClient, StaticTokenProvider
from bambai_platform.registry import AutoExecute, RequiresConfirmation, ToolContext, ToolRegistry, ToolSpec
from bambai_tools import TOOLS_ROOT

from apps.agent.db.engine import make_engine, make_session_factory
from apps.agent.db.init_db import create_tables


class Spy:
    """Executor that records its calls."""

    def __init__(self, result: str = "done"):
        self.result = result
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, input_json: Dict[str, Any], context: ToolContext) -> str:
        self.calls.append(input_json)
        return self.result


class FakeAgent:
    def __init__(self, fail_with: Exception | None = None):
        self.fail_with = fail_with
        self.calls: List[Tuple[Any, str, str]] = []

    def schedule(self, when, action_name: str, payload: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.calls.append((when, action_name, payload))


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


CITY_SCHEMA = {
    "type": "object",
    "properties": {"city": {"type": "string"}},
    "required": ["city"],
}


@pytest.fixture
def auto_spy() -> Spy:
    return Spy("auto-result")


@pytest.fixture
def confirm_spy() -> Spy:
    return Spy("confirmed-result")


@pytest.fixture
def registry(auto_spy: Spy, confirm_spy: Spy) -> ToolRegistry:
    reg = ToolRegistry()
    reg.register(ToolSpec("echoCity", "auto tool", CITY_SCHEMA, AutoExecute(auto_spy)))
    reg.register(ToolSpec("guardedCity", "confirm tool", CITY_SCHEMA, RequiresConfirmation(confirm_spy)))
    return reg


@pytest.fixture
def discovered() -> ToolRegistry:
    reg = ToolRegistry(TOOLS_ROOT)
    reg.discover()
    return reg


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def context() -> ToolContext:
    return ToolContext(profile_id="p1", session_id="s1", channel="test", timezone="UTC")


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    create_tables(engine)
    return make_session_factory(engine)


def make_api(handler) -> DomainApiClient:
    return DomainApiClient(
        "https://api.example.test/api",
        timeout_s=5,
        token_provider=StaticTokenProvider("tok-123"),
        transport=httpx.MockTransport(handler),
    )
