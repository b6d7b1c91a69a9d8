"""Table of upstream services and their clients.

Owned by the composition root and injected wherever clients are needed.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from packages.pandora_shared.logging import fields, get_logger
from services.integration.upstream_proxy.client import ResilientHttpClient
from services.integration.upstream_proxy.domain import HealthState, ServiceConfig
from services.integration.upstream_proxy.errors import (
    ServiceNotFoundError,
    ServiceUnavailableError,
)

_LOGGER = get_logger(__name__)

ClientFactory = Callable[[ServiceConfig], ResilientHttpClient]


class ServiceRegistry:
    """Known service configs plus one client per enabled, complete service."""

    def __init__(self, *, client_factory: ClientFactory = ResilientHttpClient) -> None:
        self._client_factory = client_factory
        self._configs: dict[str, ServiceConfig] = {}
        self._clients: dict[str, ResilientHttpClient] = {}
        self._retired: list[ResilientHttpClient] = []
        self._lock = threading.Lock()

    def init(self, configs: Iterable[ServiceConfig]) -> None:
        """Register every config; build clients for the usable ones.

        Disabled and incomplete services are logged and kept as known names so
        callers get ``ServiceUnavailableError`` rather than a lookup miss.
        """
        with self._lock:
            self._retired.extend(self._clients.values())
            self._configs = {}
            self._clients = {}
            for config in configs:
                self._configs[config.name] = config
                client = self._build(config)
                if client is not None:
                    self._clients[config.name] = client
        _LOGGER.info(
            "service registry initialized",
            extra={"enabled_services": sorted(self._clients), "known_services": sorted(self._configs)},
        )

    def _build(self, config: ServiceConfig) -> ResilientHttpClient | None:
        if not config.is_enabled():
            _LOGGER.info("upstream service disabled", extra={fields.UPSTREAM: config.name})
            return None
        if not config.is_complete():
            _LOGGER.warning(
                "upstream service enabled but misconfigured",
                extra={fields.UPSTREAM: config.name},
            )
            return None
        return self._client_factory(config)

    def get_client(self, name: str) -> ResilientHttpClient:
        with self._lock:
            client = self._clients.get(name)
            known = name in self._configs
        if client is not None:
            return client
        if not known:
            raise ServiceNotFoundError(message=f"unknown service: {name}", service=name)
        raise ServiceUnavailableError(
            message=f"service {name} is {self.status(name).value}", service=name
        )

    def get_config(self, name: str) -> ServiceConfig:
        with self._lock:
            config = self._configs.get(name)
        if config is None:
            raise ServiceNotFoundError(message=f"unknown service: {name}", service=name)
        return config

    def status(self, name: str) -> HealthState:
        """Static availability of one service; probes are the facade's job."""
        with self._lock:
            config = self._configs.get(name)
            has_client = name in self._clients
        if config is None:
            raise ServiceNotFoundError(message=f"unknown service: {name}", service=name)
        if has_client:
            return HealthState.HEALTHY
        if config.is_enabled():
            return HealthState.UNCONFIGURED
        return HealthState.DISABLED

    def service_names(self) -> list[str]:
        with self._lock:
            return sorted(self._configs)

    def configs(self) -> dict[str, ServiceConfig]:
        with self._lock:
            return dict(self._configs)

    def clients(self) -> dict[str, ResilientHttpClient]:
        with self._lock:
            return dict(self._clients)

    def available_services(self) -> list[str]:
        with self._lock:
            return sorted(self._clients)

    def is_available(self, name: str) -> bool:
        with self._lock:
            return name in self._clients

    def update_service_config(self, name: str, patch: Mapping[str, Any]) -> ServiceConfig:
        """Merge ``patch`` into one config, revalidate, and swap its client.

        An ``auth_strategy`` patch with the same ``kind`` merges field by
        field; a different kind replaces the strategy. The previous client is
        kept alive for in-flight calls and closed by ``aclose``.
        """
        current = self.get_config(name)
        merged = current.model_dump()
        for key, value in patch.items():
            if key == "auth_strategy" and isinstance(value, Mapping):
                existing = merged["auth_strategy"]
                if value.get("kind", existing["kind"]) == existing["kind"]:
                    value = {**existing, **value}
            merged[key] = value
        merged["name"] = name
        updated = ServiceConfig.model_validate(merged)

        with self._lock:
            self._configs[name] = updated
            previous = self._clients.pop(name, None)
            if previous is not None:
                self._retired.append(previous)
            client = self._build(updated)
            if client is not None:
                self._clients[name] = client
        _LOGGER.info(
            "upstream service config updated",
            extra={fields.UPSTREAM: name, "enabled": updated.is_enabled(), "has_client": client is not None},
        )
        return updated

    async def aclose(self) -> None:
        """Close live and retired clients."""
        with self._lock:
            clients = [*self._clients.values(), *self._retired]
            self._clients = {}
            self._retired = []
        for client in clients:
            await client.aclose()
