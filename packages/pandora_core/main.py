"""Process entrypoint and composition root for the Pandora control plane."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from packages.pandora_core.health_api import register_routes as register_health_routes
from packages.pandora_shared.config import PandoraSettings, load_settings
from packages.pandora_shared.http import create_app, run_app
from packages.pandora_shared.logging import configure_logging, get_logger
from services.integration.upstream_proxy import (
    ProxyFacade,
    ResilientHttpClient,
    ServiceRegistry,
    resolve_cache_policy,
    resolve_service_configs,
)
from services.integration.upstream_proxy.api import (
    register_exception_handlers,
)
from services.integration.upstream_proxy.api import (
    register_routes as register_proxy_routes,
)
from services.integration.upstream_proxy.registry import ClientFactory
from services.realtime.broadcast_hub import (
    BroadcastHub,
    ChannelPolicy,
    DownloadProgressPoller,
    StaticTokenAuthenticator,
    resolve_broadcast_hub_settings,
)
from services.realtime.broadcast_hub.api import register_routes as register_hub_routes

_LOGGER = get_logger(__name__)

APP_VERSION = "1.0.0"


def create_application(
    settings: PandoraSettings,
    *,
    client_factory: ClientFactory = ResilientHttpClient,
) -> FastAPI:
    """Build the FastAPI app that owns the registry, facade, hub and poller.

    Upstream clients are created here; the heartbeat and poller start with the
    app lifespan, and shutdown stops them before closing sockets and clients.
    """
    registry = ServiceRegistry(client_factory=client_factory)
    facade = ProxyFacade(registry, cache_policy=resolve_cache_policy(settings))
    facade.init(resolve_service_configs(settings))

    hub_settings = resolve_broadcast_hub_settings(settings)
    hub = BroadcastHub(
        authenticator=StaticTokenAuthenticator(hub_settings.user_tokens),
        policy=ChannelPolicy(hub_settings.protected_prefixes),
        heartbeat_interval_seconds=hub_settings.heartbeat_interval_seconds,
        send_timeout_seconds=hub_settings.send_timeout_seconds,
    )
    poller = DownloadProgressPoller(
        hub=hub,
        fetch_torrents=facade.get_torrents,
        interval_seconds=hub_settings.download_poll_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        await hub.start()
        poller.start()
        _LOGGER.info(
            "pandora started",
            extra={"available_services": facade.available_services()},
        )
        try:
            yield
        finally:
            await poller.stop()
            await hub.stop()
            await facade.aclose()
            _LOGGER.info("pandora stopped")

    app = create_app(title="Pandora API", version=APP_VERSION, lifespan=lifespan)
    router = APIRouter()
    register_health_routes(router=router, facade=facade, hub=hub)
    register_proxy_routes(router=router, facade=facade)
    register_hub_routes(router=router, hub=hub)
    app.include_router(router)
    register_exception_handlers(app)

    app.state.settings = settings
    app.state.facade = facade
    app.state.hub = hub
    app.state.poller = poller
    return app


def main() -> None:
    """Load settings, configure logging and serve until interrupted."""
    settings = load_settings()
    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
    )
    app = create_application(settings)
    _LOGGER.info(
        "serving pandora",
        extra={"host": settings.http.host, "port": settings.http.port},
    )
    run_app(
        app,
        host=settings.http.host,
        port=settings.http.port,
        log_level=settings.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
