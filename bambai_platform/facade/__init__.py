from .client import (
    ACCESS_TOKEN_HEADER,
    ERROR_SENTINEL,
    ApiResult,
    DomainApiClient,
    EnvTokenProvider,
    Failure,
    Ok,
    StaticTokenProvider,
    TokenProvider,
    render_result,
)

__all__ = [
    "ACCESS_TOKEN_HEADER",
    "ERROR_SENTINEL",
    "ApiResult",
    "DomainApiClient",
    "EnvTokenProvider",
    "Failure",
    "Ok",
    "StaticTokenProvider",
    "TokenProvider",
    "render_result",
]
