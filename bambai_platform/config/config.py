from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_BASE_URL = "https://bambai-staging.risingacademies.com/api"
DEFAULT_DATABASE_URL = "sqlite:///./bambai_dev.db"


@dataclass(frozen=True)
class ApiConfig:
    base_url: str
    timeout_seconds: float
    # environment variable holding the access token; empty means no token
    token_env: str


@dataclass(frozen=True)
class ConfirmationConfig:
    pending_ttl_seconds: int


@dataclass(frozen=True)
class AgentConfig:
    timezone: str
    database_url: str
    max_parallel_tools: int
    api: ApiConfig
    confirmation: ConfirmationConfig


def _parse(raw: Dict[str, Any]) -> AgentConfig:
    api_raw = raw.get("api", {}) or {}
    api = ApiConfig(
        base_url=api_raw.get("base_url", DEFAULT_BASE_URL),
        timeout_seconds=float(api_raw.get("timeout_seconds", 30)),
        token_env=api_raw.get("token_env", "BAMBAI_ACCESS_TOKEN"),
    )

    conf_raw = raw.get("confirmation", {}) or {}
    confirmation = ConfirmationConfig(
        pending_ttl_seconds=int(conf_raw.get("pending_ttl_seconds", 3600)),
    )

    return AgentConfig(
        timezone=raw.get("timezone", "UTC"),
        # DATABASE_URL in the environment wins over the file
        database_url=os.getenv("DATABASE_URL") or raw.get("database_url", DEFAULT_DATABASE_URL),
        max_parallel_tools=int(raw.get("max_parallel_tools", 4)),
        api=api,
        confirmation=confirmation,
    )


def load_agent_config(path: Optional[Path] = None) -> AgentConfig:
    """Load config/agent.yaml. A missing path gives the built-in defaults."""
    if path is None or not path.exists():
        return _parse({})
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return _parse(raw)
