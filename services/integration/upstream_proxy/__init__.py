"""Upstream proxy package exports."""

from services.integration.upstream_proxy.client import ResilientHttpClient
from services.integration.upstream_proxy.config import (
    CachePolicy,
    resolve_cache_policy,
    resolve_service_configs,
)
from services.integration.upstream_proxy.domain import (
    ApiKeyHeaderAuth,
    BasicAuth,
    BearerAuth,
    CacheOptions,
    CacheStats,
    HealthState,
    NoAuth,
    ServiceConfig,
    ServiceHealth,
    cached,
)
from services.integration.upstream_proxy.errors import (
    ClientError,
    NetworkError,
    ProxyError,
    RateLimitedError,
    ServerError,
    ServiceNotFoundError,
    ServiceUnavailableError,
    UpstreamError,
    UpstreamErrorKind,
    UpstreamTimeoutError,
)
from services.integration.upstream_proxy.facade import ProxyFacade
from services.integration.upstream_proxy.registry import ServiceRegistry

__all__ = [
    "ApiKeyHeaderAuth",
    "BasicAuth",
    "BearerAuth",
    "CacheOptions",
    "CachePolicy",
    "CacheStats",
    "ClientError",
    "HealthState",
    "NetworkError",
    "NoAuth",
    "ProxyError",
    "ProxyFacade",
    "RateLimitedError",
    "ResilientHttpClient",
    "ServerError",
    "ServiceConfig",
    "ServiceHealth",
    "ServiceNotFoundError",
    "ServiceRegistry",
    "ServiceUnavailableError",
    "UpstreamError",
    "UpstreamErrorKind",
    "UpstreamTimeoutError",
    "cached",
    "resolve_cache_policy",
    "resolve_service_configs",
]
