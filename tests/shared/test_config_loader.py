"""Tests for the shared configuration cascade and typed settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from packages.pandora_shared.config import (
    load_config,
    load_settings,
)


def test_load_settings_uses_pandora_precedence_cascade(tmp_path: Path) -> None:
    """CLI params should override env, env should override YAML, then defaults."""
    config_file = tmp_path / "pandora.yaml"
    config_file.write_text(
        "\n".join(
            [
                "logging:",
                "  level: WARNING",
                "upstreams:",
                "  jackett:",
                "    timeout_ms: 12000",
                "    max_retries: 5",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(
        cli_params={"logging": {"level": "DEBUG"}},
        environ={
            "PANDORA_LOGGING__LEVEL": "ERROR",
            "PANDORA_UPSTREAMS__JACKETT__MAX_RETRIES": "1",
            "PANDORA_REALTIME__HEARTBEAT_INTERVAL_SECONDS": "10",
        },
        config_path=config_file,
    )

    jackett = settings.upstreams["jackett"]
    assert settings.logging.level == "DEBUG"
    assert jackett.timeout_ms == 12000
    assert jackett.max_retries == 1
    assert jackett.auth.header_name == "X-Api-Key"
    assert settings.realtime.heartbeat_interval_seconds == 10.0


def test_load_settings_falls_back_to_builtin_defaults(tmp_path: Path) -> None:
    """Missing env and YAML should resolve to the built-in catalog."""
    settings = load_settings(config_path=tmp_path / "missing.yaml", environ={})

    assert settings.logging.service == "pandora"
    assert settings.http.port == 3001
    assert set(settings.upstreams) == {
        "tmdb",
        "watchmode",
        "jackett",
        "qbittorrent",
        "cloudcommander",
        "portainer",
        "jellyfin",
    }
    assert settings.upstreams["tmdb"].auth.kind == "bearer"
    assert settings.cache.trending_seconds == 21600
    assert settings.cache.torrent_search_seconds == 900


def test_config_file_env_var_selects_yaml_path(tmp_path: Path) -> None:
    """PANDORA_CONFIG_FILE should point the loader at an alternate YAML file."""
    config_file = tmp_path / "alt.yaml"
    config_file.write_text("http:\n  port: 4100\n", encoding="utf-8")

    settings = load_settings(environ={"PANDORA_CONFIG_FILE": str(config_file)})

    assert settings.http.port == 4100


def test_env_credentials_stay_strings_even_when_numeric(tmp_path: Path) -> None:
    """Numeric-looking secrets from env vars should validate as strings."""
    settings = load_settings(
        config_path=tmp_path / "missing.yaml",
        environ={
            "PANDORA_UPSTREAMS__PORTAINER__AUTH__KEY": "123456",
            "PANDORA_REALTIME__USER_TOKENS__ALICE": "42",
        },
    )

    assert settings.upstreams["portainer"].auth.key == "123456"
    assert settings.realtime.user_tokens == {"alice": "42"}


def test_load_config_rejects_non_mapping_yaml(tmp_path: Path) -> None:
    """A YAML file whose top level is not a mapping is a configuration error."""
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(config_path=config_file, environ={})


def test_invalid_values_fail_validation(tmp_path: Path) -> None:
    """Out-of-range resilience values should be rejected by the models."""
    with pytest.raises(ValidationError):
        load_settings(
            config_path=tmp_path / "missing.yaml",
            environ={"PANDORA_UPSTREAMS__TMDB__TIMEOUT_MS": "0"},
        )


def test_enabled_stays_unset_unless_configured(tmp_path: Path) -> None:
    """Only an explicit value should pin ``enabled``; unset means derive later."""
    settings = load_settings(
        config_path=tmp_path / "missing.yaml",
        environ={"PANDORA_UPSTREAMS__JELLYFIN__ENABLED": "false"},
    )

    assert settings.upstreams["qbittorrent"].enabled is None
    assert settings.upstreams["jellyfin"].enabled is False
