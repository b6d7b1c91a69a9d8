"""Typed configuration models for Pandora runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "pandora" / "pandora.yaml"


class LoggingSettings(BaseModel):
    """Structured logging configuration shared by Pandora components."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "pandora"
    environment: str = "dev"


class HttpServerSettings(BaseModel):
    """Bind address for the composed HTTP/WebSocket server."""

    host: str = "0.0.0.0"
    port: int = Field(default=3001, gt=0, lt=65536)


class UpstreamAuthSettings(BaseModel):
    """Flat auth block for one upstream; ``kind`` selects which fields apply."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    kind: Literal["none", "bearer", "basic", "api_key"] = "none"
    token: str = ""
    username: str = ""
    password: str = ""
    header_name: str = "X-API-Key"
    key: str = ""


class UpstreamServiceSettings(BaseModel):
    """Settings for one upstream under ``upstreams.<name>``."""

    base_url: str = ""
    auth: UpstreamAuthSettings = Field(default_factory=UpstreamAuthSettings)
    timeout_ms: int = Field(default=10000, gt=0)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_ms: int = Field(default=1000, ge=0)
    cache_ttl_seconds: int = Field(default=0, ge=0)
    enabled: bool | None = None
    health_path: str = "/health"
    health_timeout_ms: int = Field(default=5000, gt=0)


class CacheSettings(BaseModel):
    """Per-call cache TTL policy in seconds; zero disables caching."""

    trending_seconds: int = Field(default=21600, ge=0)
    popular_seconds: int = Field(default=21600, ge=0)
    search_seconds: int = Field(default=3600, ge=0)
    details_seconds: int = Field(default=86400, ge=0)
    availability_seconds: int = Field(default=86400, ge=0)
    torrent_search_seconds: int = Field(default=900, ge=0)
    stacks_seconds: int = Field(default=300, ge=0)
    container_logs_seconds: int = Field(default=300, ge=0)
    libraries_seconds: int = Field(default=600, ge=0)


class RealtimeSettings(BaseModel):
    """WebSocket hub tuning and the static user token table."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    heartbeat_interval_seconds: float = Field(default=30.0, gt=0)
    send_timeout_seconds: float = Field(default=5.0, gt=0)
    protected_prefixes: tuple[str, ...] = (
        "downloads",
        "notifications",
        "file-operations",
    )
    user_tokens: dict[str, str] = Field(default_factory=dict)
    download_poll_interval_seconds: float = Field(default=2.0, gt=0)


class PandoraSettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="PANDORA_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    http: HttpServerSettings = Field(default_factory=HttpServerSettings)
    upstreams: dict[str, UpstreamServiceSettings] = Field(default_factory=dict)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply Pandora precedence: init > env > yaml."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._config_path,
                yaml_file_encoding="utf-8",
            ),
        )
