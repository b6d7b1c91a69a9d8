"""In-process GET response cache with TTL and lazy eviction."""

from __future__ import annotations

import copy
import hashlib
import json
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from services.integration.upstream_proxy.domain import CacheStats


@dataclass(frozen=True)
class CacheEntry:
    key: str
    label: str
    payload: Any
    stored_at_ms: int
    expires_at_ms: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.expires_at_ms


def cache_key(service: str, path: str, params: Mapping[str, Any] | None) -> str:
    """Deterministic key over service, path and query parameters.

    Parameter order does not matter; values are compared by their JSON form.
    """
    material = json.dumps(
        [service, path, dict(params or {})],
        sort_keys=True,
        default=str,
        separators=(",", ":"),
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


class ResponseCache:
    """Lock-guarded map of cache entries; every operation touches one key."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, key: str) -> CacheEntry | None:
        """Return the live entry for ``key``; evict it when expired."""
        now_ms = self._now_ms()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(now_ms):
                del self._entries[key]
                return None
            return entry

    def put(self, key: str, payload: Any, *, ttl_seconds: int, label: str = "") -> None:
        """Store ``payload`` for ``ttl_seconds``; a non-positive TTL stores nothing."""
        if ttl_seconds <= 0:
            return
        now_ms = self._now_ms()
        entry = CacheEntry(
            key=key,
            label=label or key,
            payload=copy.deepcopy(payload),
            stored_at_ms=now_ms,
            expires_at_ms=now_ms + ttl_seconds * 1000,
        )
        with self._lock:
            self._entries[key] = entry

    def clear(self) -> int:
        """Drop every entry and return how many were held."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def stats(self) -> CacheStats:
        now_ms = self._now_ms()
        with self._lock:
            live = [entry for entry in self._entries.values() if not entry.is_expired(now_ms)]
        return CacheStats(size=len(live), keys=sorted(entry.label for entry in live))
