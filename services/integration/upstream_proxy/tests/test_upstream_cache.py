"""Tests for the upstream response cache and its key derivation."""

from __future__ import annotations

from services.integration.upstream_proxy.cache import ResponseCache, cache_key


class _Clock:
    def __init__(self) -> None:
        self.now = 50.0

    def __call__(self) -> float:
        return self.now


def test_cache_key_is_deterministic_and_param_order_insensitive() -> None:
    """Equal inputs hash equal regardless of mapping order."""
    first = cache_key("tmdb", "/search/multi", {"query": "dune", "page": 1})
    second = cache_key("tmdb", "/search/multi", {"page": 1, "query": "dune"})
    assert first == second
    assert len(first) == 64


def test_cache_key_differs_by_service_path_and_params() -> None:
    """Changing any key component should change the key."""
    base = cache_key("tmdb", "/movie/1", {})
    assert cache_key("watchmode", "/movie/1", {}) != base
    assert cache_key("tmdb", "/movie/2", {}) != base
    assert cache_key("tmdb", "/movie/1", {"page": 1}) != base
    assert cache_key("tmdb", "/movie/1", None) == base


def test_expired_entries_are_evicted_on_read() -> None:
    """Reads past expiry should miss and drop the entry."""
    clock = _Clock()
    cache = ResponseCache(clock=clock)
    cache.put("k", {"v": 1}, ttl_seconds=5, label="GET /k")

    entry = cache.get("k")
    assert entry is not None
    assert entry.expires_at_ms - entry.stored_at_ms == 5000

    clock.now += 5
    assert cache.get("k") is None
    assert cache.stats().size == 0


def test_non_positive_ttl_stores_nothing() -> None:
    """TTL zero means the response is never cached."""
    cache = ResponseCache(clock=_Clock())
    cache.put("k", {"v": 1}, ttl_seconds=0)
    assert cache.get("k") is None


def test_stored_payload_is_isolated_from_caller_mutation() -> None:
    """Mutating the original payload after put should not alter the entry."""
    cache = ResponseCache(clock=_Clock())
    payload = {"items": [1]}
    cache.put("k", payload, ttl_seconds=10)
    payload["items"].append(2)

    entry = cache.get("k")
    assert entry is not None
    assert entry.payload == {"items": [1]}


def test_stats_hide_expired_entries_and_clear_reports_count() -> None:
    """Stats should count live entries only; clear returns everything held."""
    clock = _Clock()
    cache = ResponseCache(clock=clock)
    cache.put("a", 1, ttl_seconds=1, label="GET /a")
    cache.put("b", 2, ttl_seconds=100, label="GET /b")
    clock.now += 2

    stats = cache.stats()
    assert stats.size == 1
    assert stats.keys == ["GET /b"]
    assert cache.clear() == 2
