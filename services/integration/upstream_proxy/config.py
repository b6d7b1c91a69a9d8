"""Settings resolution for the upstream proxy."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.pandora_shared.config import (
    CacheSettings,
    PandoraSettings,
    UpstreamAuthSettings,
    UpstreamServiceSettings,
)
from services.integration.upstream_proxy.domain import (
    ApiKeyHeaderAuth,
    AuthStrategy,
    BasicAuth,
    BearerAuth,
    NoAuth,
    ServiceConfig,
)


class CachePolicy(BaseModel):
    """TTL in seconds for each cached facade call; zero means uncached."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    trending_seconds: int = Field(default=21600, ge=0)
    popular_seconds: int = Field(default=21600, ge=0)
    search_seconds: int = Field(default=3600, ge=0)
    details_seconds: int = Field(default=86400, ge=0)
    availability_seconds: int = Field(default=86400, ge=0)
    torrent_search_seconds: int = Field(default=900, ge=0)
    stacks_seconds: int = Field(default=300, ge=0)
    container_logs_seconds: int = Field(default=300, ge=0)
    libraries_seconds: int = Field(default=600, ge=0)


def resolve_cache_policy(settings: PandoraSettings | CacheSettings) -> CachePolicy:
    """Resolve the facade cache policy from root settings or the cache section."""
    section = settings.cache if isinstance(settings, PandoraSettings) else settings
    return CachePolicy.model_validate(section.model_dump())


def auth_strategy_from_settings(auth: UpstreamAuthSettings) -> AuthStrategy:
    if auth.kind == "bearer":
        return BearerAuth(token=auth.token)
    if auth.kind == "basic":
        return BasicAuth(username=auth.username, password=auth.password)
    if auth.kind == "api_key":
        return ApiKeyHeaderAuth(header_name=auth.header_name, key=auth.key)
    return NoAuth()


def service_config_from_settings(name: str, upstream: UpstreamServiceSettings) -> ServiceConfig:
    """Build one immutable ``ServiceConfig`` from its settings block."""
    return ServiceConfig(
        name=name,
        base_address=upstream.base_url,
        auth_strategy=auth_strategy_from_settings(upstream.auth),
        timeout_ms=upstream.timeout_ms,
        max_retries=upstream.max_retries,
        retry_base_delay_ms=upstream.retry_base_delay_ms,
        cache_ttl_seconds=upstream.cache_ttl_seconds,
        enabled=upstream.enabled,
        health_path=upstream.health_path,
        health_timeout_ms=upstream.health_timeout_ms,
    )


def resolve_service_configs(settings: PandoraSettings) -> list[ServiceConfig]:
    """Build every configured upstream, ordered by name."""
    return [
        service_config_from_settings(name, upstream)
        for name, upstream in sorted(settings.upstreams.items())
    ]
