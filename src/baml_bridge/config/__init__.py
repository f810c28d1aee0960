"""
baml-bridge config package public API.

File: src/baml_bridge/config/__init__.py
Last updated: 2026-10-17

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``baml_bridge.toml`` + ``BAML_BRIDGE_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from baml_bridge.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    load_config,
    load_settings,
)
from baml_bridge.config.schema import (
    DEFAULT_CONFIG,
    MAX_DEPTH_LIMIT,
    BridgeConfig,
    BridgeSettings,
    ConfigValidationError,
    ConfigValidationIssue,
    assert_valid_config,
    default_config,
    merge_config,
    validate_config,
)

__all__ = [
    "BridgeConfig",
    "BridgeSettings",
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "MAX_DEPTH_LIMIT",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "load_config",
    "load_settings",
    "merge_config",
    "validate_config",
]
