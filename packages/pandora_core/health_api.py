"""HTTP adapter for aggregate core health."""

from __future__ import annotations

from http import HTTPStatus

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from packages.pandora_core.health import evaluate_core_health
from services.integration.upstream_proxy import ProxyFacade
from services.realtime.broadcast_hub import BroadcastHub


def register_routes(*, router: APIRouter, facade: ProxyFacade, hub: BroadcastHub) -> None:
    """Register ``GET /health`` on one router."""

    @router.get("/health")
    async def health() -> JSONResponse:
        result = await evaluate_core_health(facade=facade, hub=hub)
        return JSONResponse(
            status_code=HTTPStatus.OK if result.ready else HTTPStatus.SERVICE_UNAVAILABLE,
            content={
                "status": "ok" if result.ready else "degraded",
                **result.model_dump(mode="json", exclude_none=True),
            },
        )
