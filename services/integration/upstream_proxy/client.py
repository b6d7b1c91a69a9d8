"""Resilient HTTP client used for every upstream service.

One instance per enabled service. Requests flow through a fixed transform
pipeline (default headers, then auth), are retried with linear backoff on
transient failures, and successful GETs may be cached.
"""

from __future__ import annotations

import asyncio
import copy
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx

from packages.pandora_shared.http import (
    AsyncHttpClient,
    HttpClientError,
    HttpRequestError,
    HttpStatusError,
)
from packages.pandora_shared.logging import fields, get_logger, upstream_scope
from services.integration.upstream_proxy.auth import auth_transform
from services.integration.upstream_proxy.cache import ResponseCache, cache_key
from services.integration.upstream_proxy.domain import (
    NO_CACHE,
    CacheOptions,
    CacheStats,
    HealthState,
    ServiceConfig,
    ServiceHealth,
)
from services.integration.upstream_proxy.errors import (
    ClientError,
    NetworkError,
    RateLimitedError,
    ServerError,
    UpstreamError,
    UpstreamTimeoutError,
)
from services.integration.upstream_proxy.pipeline import (
    DEFAULT_HEADERS,
    OutboundRequest,
    RequestTransform,
    apply_pipeline,
    clean_params,
    header_transform,
)

_LOGGER = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def classify_failure(service: str, request: OutboundRequest, exc: HttpClientError) -> UpstreamError:
    """Map one shared HTTP failure onto the upstream error taxonomy."""
    common = {"service": service, "method": request.method, "path": request.path}
    if isinstance(exc, HttpStatusError):
        status = exc.status_code
        message = f"{service} returned HTTP {status} for {request.method} {request.path}"
        detail = {**common, "status_code": status, "response_body": exc.response_body}
        if status == 429:
            return RateLimitedError(message=message, **detail)
        if status >= 500:
            return ServerError(message=message, **detail)
        return ClientError(message=message, **detail)
    if isinstance(exc, HttpRequestError) and exc.timed_out:
        return UpstreamTimeoutError(
            message=f"{service} timed out for {request.method} {request.path}", **common
        )
    return NetworkError(
        message=f"{service} unreachable for {request.method} {request.path}: {exc.message}",
        **common,
    )


class ResilientHttpClient:
    """Authenticated, retrying, caching client for one upstream service."""

    def __init__(
        self,
        config: ServiceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._http = AsyncHttpClient(
            base_url=config.base_address,
            timeout_seconds=config.timeout_ms / 1000,
            transport=transport,
        )
        self._pipeline: tuple[RequestTransform, ...] = (
            header_transform(DEFAULT_HEADERS),
            auth_transform(config.auth_strategy),
        )
        self._cache = ResponseCache(clock=clock)
        self._sleep = sleep

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> ServiceConfig:
        return self._config

    async def get(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        cache: CacheOptions = NO_CACHE,
    ) -> Any:
        """GET ``path``; serve from cache when requested and still fresh."""
        query = clean_params(params)
        key = cache_key(self.name, path, query) if cache.enabled else None

        if key is not None:
            entry = self._cache.get(key)
            if entry is not None:
                _LOGGER.debug(
                    "upstream cache hit",
                    extra={fields.UPSTREAM: self.name, fields.PATH: path, fields.CACHE_HIT: True},
                )
                return copy.deepcopy(entry.payload)

        payload = await self._send(OutboundRequest(method="GET", path=path, params=query))

        if key is not None:
            ttl = cache.ttl_seconds if cache.ttl_seconds is not None else self._config.cache_ttl_seconds
            self._cache.put(key, payload, ttl_seconds=ttl, label=f"GET {path}")
        return payload

    async def post(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self._send(_body_request("POST", path, params, json, data))

    async def put(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self._send(_body_request("PUT", path, params, json, data))

    async def patch(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self._send(_body_request("PATCH", path, params, json, data))

    async def delete(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        return await self._send(_body_request("DELETE", path, params, json, None))

    async def _send(self, request: OutboundRequest) -> Any:
        """Run the pipeline, then the retry loop; raise the last classified error."""
        prepared = apply_pipeline(request, self._pipeline)
        max_retries = self._config.max_retries
        attempt = 0
        with upstream_scope(self.name, prepared.method, prepared.path):
            while True:
                attempt += 1
                try:
                    return await self._http.request_payload(
                        prepared.method,
                        prepared.path,
                        params=dict(prepared.params) or None,
                        headers=dict(prepared.headers),
                        json=prepared.json,
                        data=dict(prepared.data) if prepared.data is not None else None,
                    )
                except HttpClientError as exc:
                    error = classify_failure(self.name, prepared, exc)
                    log_extra = {
                        fields.STATUS_CODE: error.status_code,
                        fields.ERROR_KIND: error.kind.value,
                        fields.ATTEMPT: attempt,
                        fields.MAX_ATTEMPTS: max_retries + 1,
                    }
                    if not error.retryable or attempt > max_retries:
                        _LOGGER.warning("upstream request failed", extra=log_extra)
                        raise error from exc
                    delay_ms = self._config.retry_base_delay_ms * attempt
                    _LOGGER.info(
                        "upstream request retrying",
                        extra={**log_extra, fields.DELAY_MS: delay_ms},
                    )
                await self._sleep(delay_ms / 1000)

    async def probe(self) -> ServiceHealth:
        """Single health GET with its own timeout and no retries; never raises."""
        request = apply_pipeline(
            OutboundRequest(method="GET", path=self._config.health_path), self._pipeline
        )
        timeout_seconds = self._config.health_timeout_ms / 1000
        try:
            await asyncio.wait_for(
                self._http.request(
                    request.method,
                    request.path,
                    headers=dict(request.headers),
                    timeout=timeout_seconds,
                ),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError:
            return _unhealthy(f"health check timed out after {self._config.health_timeout_ms} ms")
        except HttpClientError as exc:
            return _unhealthy(str(classify_failure(self.name, request, exc)))
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning(
                "upstream health probe raised unexpectedly",
                exc_info=True,
                extra={fields.UPSTREAM: self.name},
            )
            return _unhealthy(str(exc) or type(exc).__name__)
        return ServiceHealth(status=HealthState.HEALTHY)

    def clear_cache(self) -> int:
        return self._cache.clear()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    async def aclose(self) -> None:
        await self._http.aclose()


def _body_request(
    method: str,
    path: str,
    params: Mapping[str, Any] | None,
    json: Any,
    data: Mapping[str, Any] | None,
) -> OutboundRequest:
    return OutboundRequest(
        method=method,
        path=path,
        params=clean_params(params),
        json=json,
        data=clean_params(data) if data is not None else None,
    )


def _unhealthy(message: str) -> ServiceHealth:
    return ServiceHealth(status=HealthState.UNHEALTHY, message=message)
