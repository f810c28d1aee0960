"""
baml-bridge — configuration schema and validation.

File: src/baml_bridge/config/schema.py
Last updated: 2026-10-17

Purpose
- Define configuration defaults and strict validation rules.

What should be included in this file
- Built-in defaults for the logging, client and codec sections.
- Validation that returns structured issues (field path + message).
- Deterministic deep-merge helper and the typed settings view.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, TypedDict

from baml_bridge.codec import DEFAULT_MAX_DEPTH

MAX_DEPTH_LIMIT: Final[int] = 1024
_LOG_LEVELS: Final[frozenset[str]] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class LoggingSection(TypedDict):
    level: str
    json: bool
    redact_secrets: bool


class ClientSection(TypedDict, total=False):
    default_llm_client: str
    materialize_results: bool


class CodecSection(TypedDict):
    max_depth: int


class BridgeConfig(TypedDict):
    logging: LoggingSection
    client: ClientSection
    codec: CodecSection


DEFAULT_CONFIG: Final[BridgeConfig] = {
    "logging": {"level": "INFO", "json": False, "redact_secrets": True},
    "client": {"materialize_results": False},
    "codec": {"max_depth": DEFAULT_MAX_DEPTH},
}

# Keys that may be absent from the defaults but are still accepted.
OPTIONAL_FIELDS: Final[tuple[tuple[str, ...], ...]] = (("client", "default_llm_client"),)


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    path: str
    message: str


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


@dataclass(frozen=True, slots=True)
class BridgeSettings:
    """Typed, validated view of an effective configuration."""

    log_level: str = "INFO"
    log_json: bool = False
    redact_secrets: bool = True
    default_llm_client: str | None = None
    materialize_results: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> BridgeSettings:
        validated = assert_valid_config(config)
        logging_section = validated["logging"]
        client_section = validated["client"]
        return cls(
            log_level=logging_section["level"],
            log_json=logging_section["json"],
            redact_secrets=logging_section["redact_secrets"],
            default_llm_client=client_section.get("default_llm_client"),
            materialize_results=client_section.get("materialize_results", False),
            max_depth=validated["codec"]["max_depth"],
        )


def default_config() -> dict[str, Any]:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(dict(DEFAULT_CONFIG))


def merge_config(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto ``base`` without mutating either."""

    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key in sorted(overlay):
        value = overlay[key]
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def validate_config(config: Mapping[str, Any]) -> tuple[ConfigValidationIssue, ...]:
    """Return every validation issue found in ``config`` (empty when valid)."""

    issues: list[ConfigValidationIssue] = []

    def add(path: str, message: str) -> None:
        issues.append(ConfigValidationIssue(path=path, message=message))

    known_sections = set(DEFAULT_CONFIG)
    for section in sorted(config):
        if section not in known_sections:
            add(section, "unknown section")

    logging_section = config.get("logging")
    if not isinstance(logging_section, Mapping):
        add("logging", "must be a table")
    else:
        level = logging_section.get("level")
        if not isinstance(level, str) or level.upper() not in _LOG_LEVELS:
            add("logging.level", f"must be one of {sorted(_LOG_LEVELS)}")
        for flag in ("json", "redact_secrets"):
            if not isinstance(logging_section.get(flag), bool):
                add(f"logging.{flag}", "must be a boolean")
        _reject_unknown(logging_section, "logging", add)

    client_section = config.get("client")
    if not isinstance(client_section, Mapping):
        add("client", "must be a table")
    else:
        llm_client = client_section.get("default_llm_client")
        if llm_client is not None and (not isinstance(llm_client, str) or not llm_client.strip()):
            add("client.default_llm_client", "must be a non-empty string")
        if not isinstance(client_section.get("materialize_results", False), bool):
            add("client.materialize_results", "must be a boolean")
        _reject_unknown(client_section, "client", add)

    codec_section = config.get("codec")
    if not isinstance(codec_section, Mapping):
        add("codec", "must be a table")
    else:
        max_depth = codec_section.get("max_depth")
        if isinstance(max_depth, bool) or not isinstance(max_depth, int):
            add("codec.max_depth", "must be an integer")
        elif not 1 <= max_depth <= MAX_DEPTH_LIMIT:
            add("codec.max_depth", f"must be between 1 and {MAX_DEPTH_LIMIT}")
        _reject_unknown(codec_section, "codec", add)

    return tuple(issues)


def assert_valid_config(config: Mapping[str, Any]) -> dict[str, Any]:
    """Validate ``config`` and return a normalized copy, raising on any issue."""

    issues = validate_config(config)
    if issues:
        raise ConfigValidationError(issues)
    normalized = merge_config({}, config)
    normalized["logging"]["level"] = normalized["logging"]["level"].upper()
    return normalized


def _reject_unknown(section: Mapping[str, Any], name: str, add: Any) -> None:
    allowed = set(DEFAULT_CONFIG[name])  # type: ignore[literal-required]
    allowed.update(path[1] for path in OPTIONAL_FIELDS if path[0] == name)
    for key in sorted(section):
        if key not in allowed:
            add(f"{name}.{key}", "unknown key")


__all__ = [
    "DEFAULT_CONFIG",
    "MAX_DEPTH_LIMIT",
    "OPTIONAL_FIELDS",
    "BridgeConfig",
    "BridgeSettings",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "validate_config",
]
