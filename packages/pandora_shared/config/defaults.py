"""Built-in default configuration values for Pandora.

These defaults are the final fallback in the configuration cascade:
CLI params > ENV vars > config file > built-in defaults.

Upstream entries carry no credentials; a service whose auth kind needs
credentials stays unconfigured until they are supplied.
"""

from __future__ import annotations

from typing import Any

BUILTIN_DEFAULTS: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "json_output": True,
        "service": "pandora",
        "environment": "dev",
    },
    "http": {
        "host": "0.0.0.0",
        "port": 3001,
    },
    "upstreams": {
        "tmdb": {
            "base_url": "https://api.themoviedb.org/3",
            "auth": {"kind": "bearer"},
            "timeout_ms": 10000,
            "max_retries": 3,
            "cache_ttl_seconds": 3600,
            "health_path": "/configuration",
        },
        "watchmode": {
            "base_url": "https://api.watchmode.com/v1",
            "auth": {"kind": "api_key", "header_name": "X-API-Key"},
            "timeout_ms": 10000,
            "max_retries": 3,
            "cache_ttl_seconds": 86400,
            "health_path": "/status",
        },
        "jackett": {
            "base_url": "http://localhost:9117",
            "auth": {"kind": "api_key", "header_name": "X-Api-Key"},
            "timeout_ms": 30000,
            "max_retries": 2,
            "cache_ttl_seconds": 900,
        },
        "qbittorrent": {
            "base_url": "http://localhost:8080",
            "auth": {"kind": "basic"},
            "timeout_ms": 15000,
            "max_retries": 3,
            "cache_ttl_seconds": 0,
            "health_path": "/api/v2/app/version",
        },
        "cloudcommander": {
            "base_url": "http://localhost:8000",
            "auth": {"kind": "basic"},
            "timeout_ms": 20000,
            "max_retries": 2,
            "cache_ttl_seconds": 0,
        },
        "portainer": {
            "base_url": "http://localhost:9000",
            "auth": {"kind": "api_key", "header_name": "X-API-Key"},
            "timeout_ms": 15000,
            "max_retries": 2,
            "cache_ttl_seconds": 300,
            "health_path": "/api/status",
        },
        "jellyfin": {
            "base_url": "http://localhost:8096",
            "auth": {"kind": "api_key", "header_name": "X-Emby-Token"},
            "timeout_ms": 15000,
            "max_retries": 2,
            "cache_ttl_seconds": 600,
        },
    },
    "cache": {
        "trending_seconds": 21600,
        "popular_seconds": 21600,
        "search_seconds": 3600,
        "details_seconds": 86400,
        "availability_seconds": 86400,
        "torrent_search_seconds": 900,
        "stacks_seconds": 300,
        "container_logs_seconds": 300,
        "libraries_seconds": 600,
    },
    "realtime": {
        "heartbeat_interval_seconds": 30.0,
        "send_timeout_seconds": 5.0,
        "protected_prefixes": ["downloads", "notifications", "file-operations"],
        "user_tokens": {},
        "download_poll_interval_seconds": 2.0,
    },
}
