"""HTTP routes for upstream service management."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi import APIRouter, Body, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from packages.pandora_shared.errors import exception_to_error
from packages.pandora_shared.logging import fields, get_logger
from services.integration.upstream_proxy.errors import ProxyError
from services.integration.upstream_proxy.facade import ProxyFacade

_LOGGER = get_logger(__name__)


def register_routes(*, router: APIRouter, facade: ProxyFacade) -> None:
    """Register service management routes on one router."""

    @router.get("/api/services")
    async def list_services() -> dict[str, Any]:
        return {
            "services": facade.get_service_configs(),
            "available": facade.available_services(),
        }

    @router.get("/api/services/health")
    async def services_health() -> dict[str, Any]:
        report = await facade.health_check_all()
        return {
            name: health.model_dump(mode="json", exclude_none=True)
            for name, health in report.items()
        }

    @router.get("/api/services/cache")
    async def cache_stats() -> dict[str, Any]:
        return {
            name: stats.model_dump(mode="json")
            for name, stats in facade.get_cache_stats().items()
        }

    @router.delete("/api/services/cache")
    async def clear_cache() -> dict[str, Any]:
        return {"cleared": facade.clear_all_caches()}

    @router.patch("/api/services/{name}")
    async def update_service(name: str, patch: dict[str, Any] = Body(...)) -> Any:
        try:
            return facade.update_service_config(name, patch)
        except ValidationError as exc:
            detail = exception_to_error(exc, service=name)
            return JSONResponse(
                status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
                content={"error": detail.to_dict()},
            )


def register_exception_handlers(app: FastAPI) -> None:
    """Map proxy errors onto ``ErrorDetail`` JSON responses."""

    @app.exception_handler(ProxyError)
    async def _proxy_error(_request: Request, exc: ProxyError) -> JSONResponse:
        _LOGGER.warning(
            "proxy error returned to caller",
            extra={fields.UPSTREAM: exc.service, "error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=exc.http_status,
            content={"error": exc.to_error_detail().to_dict()},
        )
