"""Configuration loading utilities with deterministic precedence.

The cascade is always:
1) CLI params
2) Environment variables
3) ~/.config/pandora/pandora.yaml (or the file named by PANDORA_CONFIG_FILE)
4) Built-in defaults

Environment variable format:
- Prefix: ``PANDORA_``
- Nested keys: ``__`` separator
- Example: ``PANDORA_UPSTREAMS__TMDB__AUTH__TOKEN=abc`` ->
  ``upstreams.tmdb.auth.token = "abc"``
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .defaults import BUILTIN_DEFAULTS
from .models import DEFAULT_CONFIG_PATH, PandoraSettings

ENV_PREFIX = "PANDORA_"
CONFIG_FILE_ENV = "PANDORA_CONFIG_FILE"


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
) -> PandoraSettings:
    """Resolve the full cascade and validate it into typed settings."""
    env = environ if environ is not None else os.environ
    resolved_path = config_path
    if resolved_path is None and env.get(CONFIG_FILE_ENV):
        resolved_path = env[CONFIG_FILE_ENV]

    merged = load_config(
        cli_params=cli_params,
        environ=env,
        config_path=resolved_path,
    )
    return PandoraSettings.model_validate(merged)


def load_config(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    defaults: Mapping[str, Any] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Load configuration by applying the standard Pandora precedence cascade."""
    merged_defaults = (
        _as_plain_dict(defaults)
        if defaults is not None
        else _as_plain_dict(BUILTIN_DEFAULTS)
    )

    file_data = _load_file_config(path=config_path)
    env_data = _load_env_config(environ=environ, prefix=env_prefix)
    cli_data = _as_plain_dict(cli_params) if cli_params is not None else {}

    merged = _merge_dicts(merged_defaults, file_data)
    merged = _merge_dicts(merged, env_data)
    merged = _merge_dicts(merged, cli_data)
    return merged


def _load_file_config(*, path: str | Path | None) -> dict[str, Any]:
    """Load YAML config from disk; return empty dict when file is absent."""
    resolved = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not resolved.exists():
        return {}

    with resolved.open("r", encoding="utf-8") as handle:
        parsed = yaml.safe_load(handle)

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config file must contain a top-level mapping: {resolved}")
    return _as_plain_dict(parsed)


def _load_env_config(
    *, environ: Mapping[str, str] | None, prefix: str
) -> dict[str, Any]:
    """Extract and map prefixed environment variables into nested config."""
    env = environ if environ is not None else os.environ
    output: dict[str, Any] = {}

    for key, raw_value in env.items():
        if not key.startswith(prefix) or key == CONFIG_FILE_ENV:
            continue

        remainder = key[len(prefix) :]
        path = [
            segment.strip().lower()
            for segment in remainder.split("__")
            if segment.strip()
        ]
        if not path:
            continue

        _set_nested(output, path, _coerce_scalar(raw_value))

    return output


def _set_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    cursor: dict[str, Any] = target
    for segment in path[:-1]:
        child = cursor.get(segment)
        if not isinstance(child, dict):
            child = {}
            cursor[segment] = child
        cursor = child
    cursor[path[-1]] = value


def _merge_dicts(
    base: Mapping[str, Any], override: Mapping[str, Any]
) -> dict[str, Any]:
    """Recursively merge mappings, with ``override`` taking precedence."""
    result = _as_plain_dict(base)
    for key, override_value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(override_value, Mapping):
            result[key] = _merge_dicts(base_value, override_value)
        else:
            result[key] = copy.deepcopy(override_value)
    return result


def _coerce_scalar(raw: str) -> Any:
    """Coerce env strings into bool/int/float/JSON when the shape is obvious.

    Credential fields coerce numbers back to strings during validation.
    """
    value = raw.strip()
    lowered = value.lower()

    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    if value.startswith(("{", "[")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return raw

    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return raw


def _as_plain_dict(value: Mapping[str, Any]) -> dict[str, Any]:
    output: dict[str, Any] = {}
    for key, subvalue in value.items():
        if isinstance(subvalue, Mapping):
            output[str(key)] = _as_plain_dict(subvalue)
        else:
            output[str(key)] = copy.deepcopy(subvalue)
    return output
