from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol, Union

import httpx

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "x-access-token"
# What a tool hands the model when the upstream call failed.
ERROR_SENTINEL = "error"


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Failure:
    message: str
    status_code: Optional[int] = None


ApiResult = Union[Ok, Failure]


class TokenProvider(Protocol):
    def __call__(self) -> str: ...


class StaticTokenProvider:
    def __init__(self, token: str = ""):
        self.token = token

    def __call__(self) -> str:
        return self.token


class EnvTokenProvider:
    """Reads the token on every call so rotated credentials are picked up."""

    def __init__(self, env_var: str):
        self.env_var = env_var

    def __call__(self) -> str:
        return os.getenv(self.env_var, "")


class DomainApiClient:
    """
    Thin GET-only client for the Bambai API.

    get() never raises for transport or HTTP errors; it returns Failure so
    each tool decides how to render the problem to the model.
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 30.0,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider or StaticTokenProvider()
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DomainApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def headers(self) -> Dict[str, str]:
        return {ACCESS_TOKEN_HEADER: self.token_provider()}

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> ApiResult:
        clean = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        try:
            r = self._client.get(path, params=clean, headers=self.headers())
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("GET %s failed status=%s", path, e.response.status_code)
            return Failure(f"HTTP {e.response.status_code}", status_code=e.response.status_code)
        except httpx.HTTPError as e:
            logger.warning("GET %s failed: %s", path, e)
            return Failure(str(e) or e.__class__.__name__)

        try:
            return Ok(r.json())
        except ValueError as e:
            logger.warning("GET %s returned non-JSON body", path)
            return Failure(f"Invalid JSON: {e}", status_code=r.status_code)


def render_result(result: ApiResult) -> str:
    if isinstance(result, Ok):
        return json.dumps(result.value, separators=(",", ":"), ensure_ascii=False)
    return ERROR_SENTINEL
