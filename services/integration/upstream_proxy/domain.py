"""Domain contracts for the upstream proxy."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

REDACTED = "***"

MediaType = Literal["movie", "tv"]
TimeWindow = Literal["day", "week"]
TorrentAction = Literal["pause", "resume", "delete"]


class NoAuth(BaseModel):
    """Upstream that needs no credentials."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["none"] = "none"

    def is_complete(self) -> bool:
        return True

    def redacted(self) -> dict[str, Any]:
        return {"kind": self.kind}


class BearerAuth(BaseModel):
    """``Authorization: Bearer <token>``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["bearer"] = "bearer"
    token: str = ""

    def is_complete(self) -> bool:
        return bool(self.token)

    def redacted(self) -> dict[str, Any]:
        return {"kind": self.kind, "token": REDACTED if self.token else ""}


class BasicAuth(BaseModel):
    """HTTP basic credentials."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["basic"] = "basic"
    username: str = ""
    password: str = ""

    def is_complete(self) -> bool:
        return bool(self.username and self.password)

    def redacted(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "username": self.username,
            "password": REDACTED if self.password else "",
        }


class ApiKeyHeaderAuth(BaseModel):
    """Static API key sent in a service-specific header."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["api_key_header"] = "api_key_header"
    header_name: str = "X-API-Key"
    key: str = ""

    def is_complete(self) -> bool:
        return bool(self.header_name and self.key)

    def redacted(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "header_name": self.header_name,
            "key": REDACTED if self.key else "",
        }


AuthStrategy = Annotated[
    Union[NoAuth, BearerAuth, BasicAuth, ApiKeyHeaderAuth],
    Field(discriminator="kind"),
]


class ServiceConfig(BaseModel):
    """Immutable description of one upstream service.

    Replaced wholesale through the registry; a replacement rebuilds the
    service's client. ``enabled=None`` leaves enablement to completeness, so
    a later credential patch can bring the service up.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    base_address: str = ""
    auth_strategy: AuthStrategy = Field(default_factory=NoAuth)
    timeout_ms: int = Field(default=10000, gt=0)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_ms: int = Field(default=1000, ge=0)
    cache_ttl_seconds: int = Field(default=0, ge=0)
    enabled: bool | None = True
    health_path: str = "/health"
    health_timeout_ms: int = Field(default=5000, gt=0)

    def is_complete(self) -> bool:
        """Whether a client can be built: an address and full credentials."""
        return bool(self.base_address.strip()) and self.auth_strategy.is_complete()

    def is_enabled(self) -> bool:
        """Explicit ``enabled`` wins; otherwise enabled once complete."""
        if self.enabled is not None:
            return self.enabled
        return self.is_complete()

    def redacted(self) -> dict[str, Any]:
        """Return a JSON-ready view with every secret replaced by ``***``."""
        payload = self.model_dump(mode="json", exclude={"auth_strategy"})
        payload["auth_strategy"] = self.auth_strategy.redacted()
        return payload


class CacheOptions(BaseModel):
    """Per-call cache request; honored for GET only."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = False
    ttl_seconds: int | None = Field(default=None, ge=0)


NO_CACHE = CacheOptions(enabled=False)


def cached(ttl_seconds: int | None = None) -> CacheOptions:
    """Shorthand for an enabled cache request."""
    return CacheOptions(enabled=True, ttl_seconds=ttl_seconds)


class HealthState(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DISABLED = "disabled"
    UNCONFIGURED = "unconfigured"


class ServiceHealth(BaseModel):
    """Health verdict for one service."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: HealthState
    message: str | None = None


class CacheStats(BaseModel):
    """Snapshot of one client's response cache."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    size: int
    keys: list[str] = Field(default_factory=list)
