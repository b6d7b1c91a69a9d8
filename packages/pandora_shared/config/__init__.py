"""Public API for shared Pandora configuration utilities."""

from .defaults import BUILTIN_DEFAULTS
from .loader import load_config, load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    CacheSettings,
    HttpServerSettings,
    LoggingSettings,
    PandoraSettings,
    RealtimeSettings,
    UpstreamAuthSettings,
    UpstreamServiceSettings,
)

__all__ = [
    "BUILTIN_DEFAULTS",
    "DEFAULT_CONFIG_PATH",
    "CacheSettings",
    "HttpServerSettings",
    "LoggingSettings",
    "PandoraSettings",
    "RealtimeSettings",
    "UpstreamAuthSettings",
    "UpstreamServiceSettings",
    "load_config",
    "load_settings",
]
