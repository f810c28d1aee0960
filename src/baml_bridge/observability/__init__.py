"""Observability helpers for the bridge."""

from baml_bridge.observability.logging import (
    LoggingConfig,
    configure_logging,
    redact_event,
    reset_logging,
)

__all__ = [
    "LoggingConfig",
    "configure_logging",
    "redact_event",
    "reset_logging",
]
