"""Settings resolution for the broadcast hub."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.pandora_shared.config import PandoraSettings


class BroadcastHubSettings(BaseModel):
    """Hub runtime settings derived from ``realtime``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    heartbeat_interval_seconds: float = Field(default=30.0, gt=0)
    send_timeout_seconds: float = Field(default=5.0, gt=0)
    protected_prefixes: tuple[str, ...] = ("downloads", "notifications", "file-operations")
    user_tokens: dict[str, str] = Field(default_factory=dict)
    download_poll_interval_seconds: float = Field(default=2.0, gt=0)

    @field_validator("protected_prefixes")
    @classmethod
    def _reject_blank_prefixes(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """An empty prefix would protect every channel."""
        cleaned = tuple(item.strip() for item in value)
        if any(not item for item in cleaned):
            raise ValueError("protected_prefixes must not contain blank entries")
        return cleaned


def resolve_broadcast_hub_settings(settings: PandoraSettings) -> BroadcastHubSettings:
    """Resolve hub settings from the root ``realtime`` section."""
    return BroadcastHubSettings.model_validate(settings.realtime.model_dump())
