"""Structured logging setup for the bridge with JSON or console output and redaction."""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import IO, Any, Final

import structlog

from baml_bridge.config.schema import BridgeSettings

_REDACTED_VALUE: Final[str] = "***REDACTED***"

_SENSITIVE_KEY_TERMS: Final[tuple[str, ...]] = (
    "secret",
    "token",
    "password",
    "passphrase",
    "api_key",
    "apikey",
    "authorization",
    "credential",
    "cookie",
    "private_key",
    "client_secret",
)

_SENSITIVE_ASSIGNMENT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?i)\b(api[_-]?key|token|password|secret|client_secret|authorization)\b\s*([:=])\s*([^\s,;]+)"
)
_BEARER_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._~+/-]+=*")
_OPENAI_KEY_PATTERN: Final[re.Pattern[str]] = re.compile(r"\bsk-[A-Za-z0-9]{12,}\b")
_ANTHROPIC_KEY_PATTERN: Final[re.Pattern[str]] = re.compile(r"\bsk-ant-[A-Za-z0-9_-]{12,}\b")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Configuration for structlog output."""

    level: int | str = "INFO"
    json: bool = False
    redact_secrets: bool = True
    stream: IO[str] | None = None

    @classmethod
    def from_settings(
        cls, settings: BridgeSettings, *, stream: IO[str] | None = None
    ) -> LoggingConfig:
        return cls(
            level=settings.log_level,
            json=settings.log_json,
            redact_secrets=settings.redact_secrets,
            stream=stream,
        )


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Install the process-wide structlog configuration described by ``config``."""

    cfg = config if config is not None else LoggingConfig()
    level = _parse_log_level(cfg.level)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if cfg.redact_secrets:
        processors.append(redact_event)
    if cfg.json:
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(cfg.stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def reset_logging() -> None:
    """Restore structlog defaults."""

    structlog.reset_defaults()


def redact_event(
    _logger: object, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking secret-looking keys and inline credentials."""

    for key in list(event_dict):
        event_dict[key] = _redact_value(event_dict[key], key_context=key)
    return event_dict


def _redact_value(value: Any, *, key_context: str | None) -> Any:
    if key_context is not None and key_context != "event":
        if _requires_redaction_for_key(key_context):
            return _REDACTED_VALUE

    if isinstance(value, str):
        return _redact_string(value)

    if isinstance(value, list):
        return [_redact_value(item, key_context=None) for item in value]

    if isinstance(value, dict):
        return {
            key: _redact_value(item, key_context=key if isinstance(key, str) else None)
            for key, item in value.items()
        }

    return value


def _requires_redaction_for_key(key: str) -> bool:
    key_lower = key.lower()
    return any(term in key_lower for term in _SENSITIVE_KEY_TERMS)


def _redact_string(text: str) -> str:
    redacted = _SENSITIVE_ASSIGNMENT_PATTERN.sub(
        lambda match: f"{match.group(1)}{match.group(2)}{_REDACTED_VALUE}", text
    )
    redacted = _BEARER_TOKEN_PATTERN.sub(f"Bearer {_REDACTED_VALUE}", redacted)
    redacted = _ANTHROPIC_KEY_PATTERN.sub(_REDACTED_VALUE, redacted)
    redacted = _OPENAI_KEY_PATTERN.sub(_REDACTED_VALUE, redacted)
    return redacted


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, bool):
        raise ValueError("log level must be an int or level name")
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(value.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {value!r}")
    return resolved


__all__ = [
    "LoggingConfig",
    "configure_logging",
    "redact_event",
    "reset_logging",
]
