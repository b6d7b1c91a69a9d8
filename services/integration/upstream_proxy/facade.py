"""Domain-shaped operations over the registry's upstream clients.

Each method picks a client, a path and a cache policy and forwards the
upstream payload unchanged. Errors pass through as raised by the client,
except in ``health_check_all`` which never fails as a whole.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

from packages.pandora_shared.logging import fields, get_logger
from services.integration.upstream_proxy.client import ResilientHttpClient
from services.integration.upstream_proxy.config import CachePolicy
from services.integration.upstream_proxy.domain import (
    CacheStats,
    HealthState,
    MediaType,
    ServiceConfig,
    ServiceHealth,
    TimeWindow,
    TorrentAction,
    cached,
)
from services.integration.upstream_proxy.registry import ServiceRegistry

_LOGGER = get_logger(__name__)

TMDB = "tmdb"
WATCHMODE = "watchmode"
JACKETT = "jackett"
QBITTORRENT = "qbittorrent"
CLOUDCOMMANDER = "cloudcommander"
PORTAINER = "portainer"
JELLYFIN = "jellyfin"

PORTAINER_ENDPOINT_ID = 1

_MEDIA_TYPES = ("movie", "tv")
_TIME_WINDOWS = ("day", "week")
_TORRENT_ACTIONS = ("pause", "resume", "delete")


def _require_choice(name: str, value: str, choices: tuple[str, ...]) -> str:
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}; got {value!r}")
    return value


class ProxyFacade:
    """Thin domain wrappers plus registry lifecycle and cache management."""

    def __init__(
        self,
        registry: ServiceRegistry,
        *,
        cache_policy: CachePolicy | None = None,
    ) -> None:
        self._registry = registry
        self._cache_policy = cache_policy or CachePolicy()

    @property
    def registry(self) -> ServiceRegistry:
        return self._registry

    def init(self, configs: Iterable[ServiceConfig]) -> None:
        self._registry.init(configs)

    async def aclose(self) -> None:
        await self._registry.aclose()

    def _client(self, name: str) -> ResilientHttpClient:
        return self._registry.get_client(name)

    # Metadata (tmdb)

    async def get_trending(self, media_type: MediaType, time_window: TimeWindow) -> Any:
        _require_choice("media_type", media_type, _MEDIA_TYPES)
        _require_choice("time_window", time_window, _TIME_WINDOWS)
        return await self._client(TMDB).get(
            f"/trending/{media_type}/{time_window}",
            cache=cached(self._cache_policy.trending_seconds),
        )

    async def get_popular(self, media_type: MediaType, page: int = 1) -> Any:
        _require_choice("media_type", media_type, _MEDIA_TYPES)
        return await self._client(TMDB).get(
            f"/{media_type}/popular",
            params={"page": page},
            cache=cached(self._cache_policy.popular_seconds),
        )

    async def search_media(
        self, query: str, media_type: MediaType | None = None, page: int = 1
    ) -> Any:
        if media_type is not None:
            _require_choice("media_type", media_type, _MEDIA_TYPES)
        path = f"/search/{media_type}" if media_type else "/search/multi"
        return await self._client(TMDB).get(
            path,
            params={"query": query, "page": page},
            cache=cached(self._cache_policy.search_seconds),
        )

    async def get_media_details(self, media_type: MediaType, media_id: int) -> Any:
        _require_choice("media_type", media_type, _MEDIA_TYPES)
        return await self._client(TMDB).get(
            f"/{media_type}/{media_id}",
            cache=cached(self._cache_policy.details_seconds),
        )

    # Availability (watchmode)

    async def get_availability(self, tmdb_id: int, source_type: MediaType) -> Any:
        _require_choice("source_type", source_type, _MEDIA_TYPES)
        return await self._client(WATCHMODE).get(
            "/title/sources",
            params={"source_ids": f"tmdb:{tmdb_id}", "source_type": source_type},
            cache=cached(self._cache_policy.availability_seconds),
        )

    # Indexer (jackett)

    async def search_torrents(self, query: str, category: str | None = None) -> Any:
        return await self._client(JACKETT).get(
            "/api/v2.0/indexers/all/results",
            params={"Query": query, "Category": category},
            cache=cached(self._cache_policy.torrent_search_seconds),
        )

    # Download daemon (qbittorrent)

    async def get_torrents(self) -> Any:
        return await self._client(QBITTORRENT).get("/api/v2/torrents/info")

    async def add_torrent(self, magnet_url: str, save_path: str | None = None) -> Any:
        return await self._client(QBITTORRENT).post(
            "/api/v2/torrents/add",
            data={"urls": magnet_url, "savepath": save_path},
        )

    async def control_torrent(self, torrent_hash: str, action: TorrentAction) -> Any:
        _require_choice("action", action, _TORRENT_ACTIONS)
        form: dict[str, Any] = {"hashes": torrent_hash}
        if action == "delete":
            form["deleteFiles"] = "false"
        return await self._client(QBITTORRENT).post(f"/api/v2/torrents/{action}", data=form)

    # File browser (cloudcommander)

    async def browse_path(self, path: str = "/") -> Any:
        return await self._client(CLOUDCOMMANDER).get("/api/v1/fs", params={"path": path})

    async def move_file(self, source: str, destination: str) -> Any:
        return await self._client(CLOUDCOMMANDER).put(
            "/api/v1/fs",
            json={"from": source, "to": destination, "operation": "move"},
        )

    async def copy_file(self, source: str, destination: str) -> Any:
        return await self._client(CLOUDCOMMANDER).put(
            "/api/v1/fs",
            json={"from": source, "to": destination, "operation": "copy"},
        )

    async def delete_file(self, path: str) -> Any:
        return await self._client(CLOUDCOMMANDER).delete("/api/v1/fs", json={"path": path})

    # Container manager (portainer)

    async def get_containers(self) -> Any:
        # Container state is live data; never cached.
        return await self._client(PORTAINER).get(
            f"/api/endpoints/{PORTAINER_ENDPOINT_ID}/docker/containers/json",
            params={"all": "true"},
        )

    async def get_stacks(self) -> Any:
        return await self._client(PORTAINER).get(
            "/api/stacks", cache=cached(self._cache_policy.stacks_seconds)
        )

    async def restart_container(self, container_id: str) -> Any:
        return await self._client(PORTAINER).post(
            f"/api/endpoints/{PORTAINER_ENDPOINT_ID}/docker/containers/{container_id}/restart"
        )

    async def get_container_logs(self, container_id: str, tail: int = 100) -> Any:
        return await self._client(PORTAINER).get(
            f"/api/endpoints/{PORTAINER_ENDPOINT_ID}/docker/containers/{container_id}/logs",
            params={"stdout": "true", "stderr": "true", "tail": tail},
            cache=cached(self._cache_policy.container_logs_seconds),
        )

    # Media server (jellyfin)

    async def get_libraries(self) -> Any:
        return await self._client(JELLYFIN).get(
            "/Library/VirtualFolders", cache=cached(self._cache_policy.libraries_seconds)
        )

    async def scan_library(self, library_id: str) -> Any:
        return await self._client(JELLYFIN).post("/Library/Refresh", params={"itemId": library_id})

    async def get_scan_status(self) -> Any:
        return await self._client(JELLYFIN).get("/ScheduledTasks")

    # Health and management

    async def health_check_all(self) -> dict[str, ServiceHealth]:
        """Probe every live client concurrently; list the rest by status."""
        clients = self._registry.clients()
        names = sorted(clients)
        results = await asyncio.gather(*(self._probe(clients[name]) for name in names))
        report: dict[str, ServiceHealth] = dict(zip(names, results))
        for name in self._registry.service_names():
            if name not in report:
                report[name] = ServiceHealth(status=self._registry.status(name))
        return dict(sorted(report.items()))

    async def _probe(self, client: ResilientHttpClient) -> ServiceHealth:
        try:
            result = await client.probe()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning(
                "health probe failed", exc_info=True, extra={fields.UPSTREAM: client.name}
            )
            return ServiceHealth(status=HealthState.UNHEALTHY, message=str(exc))
        if result.status is not HealthState.HEALTHY:
            _LOGGER.info(
                "upstream unhealthy",
                extra={fields.UPSTREAM: client.name, "detail": result.message},
            )
        return result

    def clear_all_caches(self) -> int:
        """Drop every cached response and return how many entries went."""
        cleared = sum(client.clear_cache() for client in self._registry.clients().values())
        _LOGGER.info("upstream caches cleared", extra={"entries": cleared})
        return cleared

    def get_cache_stats(self) -> dict[str, CacheStats]:
        return {
            name: client.cache_stats()
            for name, client in sorted(self._registry.clients().items())
        }

    def get_service_configs(self) -> dict[str, dict[str, Any]]:
        """Redacted configs keyed by name, each with its current status."""
        output: dict[str, dict[str, Any]] = {}
        for name, config in sorted(self._registry.configs().items()):
            view = config.redacted()
            view["available"] = self._registry.is_available(name)
            output[name] = view
        return output

    def update_service_config(self, name: str, patch: Mapping[str, Any]) -> dict[str, Any]:
        updated = self._registry.update_service_config(name, patch)
        view = updated.redacted()
        view["available"] = self._registry.is_available(name)
        return view

    def available_services(self) -> list[str]:
        return self._registry.available_services()

    def is_service_available(self, name: str) -> bool:
        return self._registry.is_available(name)
