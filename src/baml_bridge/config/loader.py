"""
baml-bridge — runtime config loader.

File: src/baml_bridge/config/loader.py
Last updated: 2026-10-17

Purpose
- Load effective bridge config from defaults, TOML file, env vars, and explicit overrides.

What should be included in this file
- Precedence logic: overrides > env (BAML_BRIDGE_) > file > defaults.
- TOML loading via ``tomllib``.
- Fixed environment variable table and coercion.
- Deterministic dump of effective config.

Non-functional requirements
- Keep loading deterministic and reproducible.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final, Literal

from baml_bridge.config.schema import (
    BridgeSettings,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "baml_bridge.toml"
ENV_PREFIX: Final[str] = "BAML_BRIDGE_"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

_ValueKind = Literal["str", "int", "bool"]

_ENV_BINDINGS: Final[dict[str, tuple[tuple[str, str], _ValueKind]]] = {
    f"{ENV_PREFIX}LOGGING_LEVEL": (("logging", "level"), "str"),
    f"{ENV_PREFIX}LOGGING_JSON": (("logging", "json"), "bool"),
    f"{ENV_PREFIX}LOGGING_REDACT_SECRETS": (("logging", "redact_secrets"), "bool"),
    f"{ENV_PREFIX}CLIENT_DEFAULT_LLM_CLIENT": (("client", "default_llm_client"), "str"),
    f"{ENV_PREFIX}CLIENT_MATERIALIZE_RESULTS": (("client", "materialize_results"), "bool"),
    f"{ENV_PREFIX}CODEC_MAX_DEPTH": (("codec", "max_depth"), "int"),
}


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective config with deterministic precedence: overrides > env > file > defaults."""

    resolved_path = _resolve_config_path(config_path)
    env_map = dict(os.environ if environ is None else environ)

    file_payload = _load_toml_file(resolved_path, required=config_path is not None)
    merged = merge_config(default_config(), file_payload)
    merged = assert_valid_config(merged)

    merged = merge_config(merged, _collect_env_overrides(env_map))
    merged = merge_config(merged, _materialize_overrides(dict(overrides or {})))
    return assert_valid_config(merged)


def load_settings(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> BridgeSettings:
    """Load config and return its typed settings view."""

    return BridgeSettings.from_config(
        load_config(config_path, overrides=overrides, environ=environ)
    )


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Return deterministic JSON dump of the effective config."""

    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _resolve_config_path(config_path: str | Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    return Path(config_path).expanduser().resolve()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    return parsed


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for env_name, (path, value_type) in _ENV_BINDINGS.items():
        raw = environ.get(env_name)
        if raw is None:
            continue
        _set_nested(overrides, path, _coerce_env(raw, value_type, env_name, path))
    return overrides


def _coerce_env(raw: str, value_type: _ValueKind, env_name: str, path: tuple[str, ...]) -> object:
    value = raw.strip()
    if value_type == "str":
        return value
    if value_type == "int":
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigLoadError(f"{env_name} -> {'.'.join(path)} must be an integer") from exc

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ConfigLoadError(
        f"{env_name} -> {'.'.join(path)} must be a boolean (true/false/1/0/yes/no/on/off)"
    )


def _materialize_overrides(overrides: Mapping[str, object]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key in sorted(overrides):
        path = tuple(part for part in key.split(".") if part)
        if not path:
            raise ConfigLoadError(f"invalid override key {key!r}")
        nested: dict[str, Any] = {}
        _set_nested(nested, path, overrides[key])
        payload = merge_config(payload, nested)
    return payload


def _set_nested(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    cursor = target
    for part in path[:-1]:
        cursor = cursor.setdefault(part, {})
    cursor[path[-1]] = value


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "dump_effective_config",
    "load_config",
    "load_settings",
]
