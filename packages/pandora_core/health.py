"""Aggregate readiness across upstream services and the broadcast hub."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from services.integration.upstream_proxy import HealthState, ProxyFacade, ServiceHealth
from services.realtime.broadcast_hub import BroadcastHub


class CoreHealthResult(BaseModel):
    """One aggregate health snapshot.

    ``ready`` is true when the heartbeat runs and every enabled, configured
    upstream answered its probe. Disabled and unconfigured services are
    reported but never make the process unready.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    upstreams: dict[str, ServiceHealth] = Field(default_factory=dict)
    realtime: dict[str, Any] = Field(default_factory=dict)


async def evaluate_core_health(*, facade: ProxyFacade, hub: BroadcastHub) -> CoreHealthResult:
    """Probe upstreams concurrently and combine them with hub statistics."""
    upstreams = await facade.health_check_all()
    realtime = hub.stats()
    upstreams_ready = all(
        item.status is not HealthState.UNHEALTHY for item in upstreams.values()
    )
    return CoreHealthResult(
        ready=bool(realtime["running"]) and upstreams_ready,
        upstreams=upstreams,
        realtime=realtime,
    )
