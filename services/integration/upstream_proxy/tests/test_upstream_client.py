"""Behavior tests for the resilient upstream HTTP client."""

from __future__ import annotations

import asyncio
import base64

import httpx
import pytest

from services.integration.upstream_proxy.client import ResilientHttpClient
from services.integration.upstream_proxy.domain import (
    ApiKeyHeaderAuth,
    BasicAuth,
    BearerAuth,
    HealthState,
    NoAuth,
    ServiceConfig,
    cached,
)
from services.integration.upstream_proxy.errors import (
    ClientError,
    NetworkError,
    RateLimitedError,
    ServerError,
    UpstreamErrorKind,
    UpstreamTimeoutError,
)


class _Sleeper:
    """Records requested backoff delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _config(**overrides: object) -> ServiceConfig:
    values: dict[str, object] = {
        "name": "tmdb",
        "base_address": "https://upstream.test",
        "auth_strategy": BearerAuth(token="t0ken"),
        "max_retries": 3,
        "retry_base_delay_ms": 100,
        "cache_ttl_seconds": 60,
    }
    values.update(overrides)
    return ServiceConfig.model_validate(values)


def _client(
    handler, *, sleeper: _Sleeper | None = None, clock: _Clock | None = None, **overrides: object
) -> ResilientHttpClient:
    return ResilientHttpClient(
        _config(**overrides),
        transport=httpx.MockTransport(handler),
        sleep=sleeper or _Sleeper(),
        clock=clock or _Clock(),
    )


def _run(client: ResilientHttpClient, coro_factory):
    async def _inner():
        try:
            return await coro_factory()
        finally:
            await client.aclose()

    return asyncio.run(_inner())


def test_transient_failures_retry_with_linear_backoff() -> None:
    """503, 503, 200 with base delay 100 ms should sleep 100 then 200 ms."""
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if len(calls) < 3:
            return httpx.Response(503, request=request)
        return httpx.Response(200, json=[{"hash": "abc"}], request=request)

    sleeper = _Sleeper()
    client = _client(handler, sleeper=sleeper, name="qbittorrent")

    payload = _run(client, lambda: client.get("/api/v2/torrents/info"))

    assert payload == [{"hash": "abc"}]
    assert len(calls) == 3
    assert sleeper.delays == [0.1, 0.2]
    assert sum(sleeper.delays) == pytest.approx(0.3)


def test_retries_stop_after_max_retries_and_raise_last_error() -> None:
    """Persistent 500s should make exactly max_retries + 1 attempts."""
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(500, text="boom", request=request)

    sleeper = _Sleeper()
    client = _client(handler, sleeper=sleeper, max_retries=2)

    with pytest.raises(ServerError) as exc_info:
        _run(client, lambda: client.get("/movie/1"))

    error = exc_info.value
    assert len(calls) == 3
    assert sleeper.delays == [0.1, 0.2]
    assert error.service == "tmdb"
    assert error.status_code == 500
    assert error.kind is UpstreamErrorKind.SERVER_ERROR
    assert error.retryable is True


def test_client_errors_are_not_retried() -> None:
    """A 404 should fail immediately without any backoff."""
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(404, request=request)

    sleeper = _Sleeper()
    client = _client(handler, sleeper=sleeper)

    with pytest.raises(ClientError) as exc_info:
        _run(client, lambda: client.get("/movie/999"))

    assert len(calls) == 1
    assert sleeper.delays == []
    assert exc_info.value.status_code == 404
    assert exc_info.value.retryable is False


def test_rate_limiting_is_retried() -> None:
    """429 responses should be retried and surface as RateLimitedError."""
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(429, request=request)

    client = _client(handler, max_retries=1)

    with pytest.raises(RateLimitedError):
        _run(client, lambda: client.get("/trending/movie/day"))
    assert len(calls) == 2


def test_zero_retries_means_single_attempt() -> None:
    """max_retries=0 should try once and raise."""
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(502, request=request)

    client = _client(handler, max_retries=0)

    with pytest.raises(ServerError):
        _run(client, lambda: client.get("/x"))
    assert len(calls) == 1


def test_network_and_timeout_failures_are_classified() -> None:
    """Connect errors map to NetworkError, read timeouts to UpstreamTimeoutError."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/slow":
            raise httpx.ReadTimeout("slow", request=request)
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler, max_retries=1)

    async def _both() -> tuple[Exception, Exception]:
        with pytest.raises(NetworkError) as network:
            await client.get("/down")
        with pytest.raises(UpstreamTimeoutError) as timeout:
            await client.get("/slow")
        return network.value, timeout.value

    network, timeout = _run(client, _both)
    assert network.retryable is True
    assert timeout.kind is UpstreamErrorKind.TIMEOUT


def test_cached_get_suppresses_second_network_call() -> None:
    """A fresh cache entry should be served without touching the network."""
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json={"results": [1, 2]}, request=request)

    client = _client(handler)

    async def _twice() -> tuple[object, object]:
        first = await client.get("/trending/movie/day", cache=cached(60))
        second = await client.get("/trending/movie/day", cache=cached(60))
        return first, second

    first, second = _run(client, _twice)
    assert first == second == {"results": [1, 2]}
    assert len(calls) == 1


def test_cache_entry_expires_after_ttl() -> None:
    """Once the TTL passes the next GET should go back to the network."""
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json={"n": len(calls)}, request=request)

    clock = _Clock()
    client = _client(handler, clock=clock)

    async def _flow() -> list[object]:
        results = [await client.get("/movie/1", cache=cached(10))]
        clock.now += 9.5
        results.append(await client.get("/movie/1", cache=cached(10)))
        clock.now += 1.0
        results.append(await client.get("/movie/1", cache=cached(10)))
        return results

    results = _run(client, _flow)
    assert results == [{"n": 1}, {"n": 1}, {"n": 2}]
    assert len(calls) == 2


def test_cache_key_tracks_params_but_not_their_order() -> None:
    """Different params miss; the same params in another order hit."""
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(200, json={}, request=request)

    client = _client(handler)

    async def _flow() -> None:
        await client.get("/search/multi", params={"query": "dune", "page": 1}, cache=cached())
        await client.get("/search/multi", params={"page": 1, "query": "dune"}, cache=cached())
        await client.get("/search/multi", params={"query": "dune", "page": 2}, cache=cached())

    _run(client, _flow)
    assert len(calls) == 2


def test_zero_ttl_and_uncached_calls_always_hit_network() -> None:
    """TTL 0 stores nothing and calls without cache options never read it."""
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json={}, request=request)

    client = _client(handler, cache_ttl_seconds=0)

    async def _flow() -> int:
        await client.get("/a", cache=cached())
        await client.get("/a", cache=cached())
        await client.get("/b")
        await client.get("/b")
        return client.cache_stats().size

    assert _run(client, _flow) == 0
    assert len(calls) == 4


def test_clear_cache_and_stats() -> None:
    """Stats list live entry labels and clear_cache empties the map."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={}, request=request)

    client = _client(handler)

    async def _flow() -> tuple[list[str], int, int]:
        await client.get("/stacks", cache=cached())
        keys = client.cache_stats().keys
        cleared = client.clear_cache()
        return keys, cleared, client.cache_stats().size

    keys, cleared, remaining = _run(client, _flow)
    assert keys == ["GET /stacks"]
    assert cleared == 1
    assert remaining == 0


@pytest.mark.parametrize(
    ("strategy", "header", "expected"),
    [
        (BearerAuth(token="abc"), "authorization", "Bearer abc"),
        (
            BasicAuth(username="admin", password="adminpass"),
            "authorization",
            "Basic " + base64.b64encode(b"admin:adminpass").decode("ascii"),
        ),
        (ApiKeyHeaderAuth(header_name="X-Emby-Token", key="k"), "x-emby-token", "k"),
    ],
)
def test_auth_strategy_headers_are_attached(strategy, header: str, expected: str) -> None:
    """Each auth strategy should contribute its header to every request."""
    seen: list[httpx.Headers] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers)
        return httpx.Response(200, json={}, request=request)

    client = _client(handler, auth_strategy=strategy)
    _run(client, lambda: client.post("/x", json={"a": 1}))

    assert seen[0][header] == expected
    assert seen[0]["accept"] == "application/json"


def test_no_auth_sends_no_authorization_header() -> None:
    """NoAuth should leave Authorization unset."""
    seen: list[httpx.Headers] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers)
        return httpx.Response(200, request=request)

    client = _client(handler, auth_strategy=NoAuth())
    _run(client, lambda: client.get("/x"))

    assert "authorization" not in seen[0]


def test_none_params_are_dropped_from_query() -> None:
    """Optional query values set to None should not reach the URL."""
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json=[], request=request)

    client = _client(handler)
    _run(client, lambda: client.get("/results", params={"Query": "x", "Category": None}))

    assert dict(seen[0].params) == {"Query": "x"}


def test_probe_reports_health_without_raising() -> None:
    """Probe should report healthy on 2xx and unhealthy on any failure."""

    def healthy(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/health"
        return httpx.Response(200, request=request)

    def failing(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    calls: list[int] = []

    def erroring(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(503, request=request)

    ok_client = _client(healthy)
    down_client = _client(failing)
    error_client = _client(erroring)

    ok = _run(ok_client, ok_client.probe)
    down = _run(down_client, down_client.probe)
    errored = _run(error_client, error_client.probe)

    assert ok.status is HealthState.HEALTHY
    assert down.status is HealthState.UNHEALTHY
    assert down.message
    assert errored.status is HealthState.UNHEALTHY
    assert len(calls) == 1
