import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

import structlog
from structlog.types import EventDict, WrappedLogger

# ============================================================================
# Configuration & Constants
# ============================================================================

PACKAGE_PREFIX = "research_scanner"


class LogKeys(str, Enum):
    """Log field keys shared by the processors and the formatter."""

    CORRELATION_ID = "correlation_id"
    CONTEXT = "context"
    TIMESTAMP = "timestamp"
    LOGGER = "logger"
    MESSAGE = "message"
    LEVEL = "level"
    EXTRA = "extra"


@dataclass(frozen=True)
class LogDefaults:
    """Default values for logging configuration."""

    context: str = "orchestrator"
    correlation_id: str = "unknown"
    log_level: str = "INFO"
    max_value_length: int = 60
    correlation_id_display_length: int = 8


DEFAULTS = LogDefaults()

# Field names whose values never reach the log output.
SENSITIVE_FIELD_MARKERS = ("secret", "connection_key", "authorization", "api_key")
REDACTED = "***"


# ============================================================================
# Context Operations
# ============================================================================


def _get_context_value(key: str, default: str) -> str:
    return str(structlog.contextvars.get_contextvars().get(key, default))


def get_correlation_id() -> str:
    """Get the correlation ID of the current research run."""
    return _get_context_value(LogKeys.CORRELATION_ID.value, DEFAULTS.correlation_id)


def new_correlation_id() -> str:
    """Short random id, readable in human-formatted logs."""
    return str(uuid4())[: DEFAULTS.correlation_id_display_length]


# ============================================================================
# Log Processing
# ============================================================================


def _redact_sensitive_fields(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Mask credential-like fields so provider keys never leak into logs."""
    for key in list(event_dict):
        if any(marker in key.lower() for marker in SENSITIVE_FIELD_MARKERS):
            event_dict[key] = REDACTED
    return event_dict


def _process_log_fields(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Move the event name to ``message`` and fold custom fields into ``extra``."""
    event_dict[LogKeys.MESSAGE.value] = event_dict.pop("event", "")
    event_dict[LogKeys.CONTEXT.value] = _get_context_value(LogKeys.CONTEXT.value, DEFAULTS.context)
    correlation_id = _get_context_value(LogKeys.CORRELATION_ID.value, DEFAULTS.correlation_id)

    standard_fields = (
        LogKeys.TIMESTAMP.value,
        LogKeys.LOGGER.value,
        LogKeys.MESSAGE.value,
        LogKeys.CONTEXT.value,
        LogKeys.LEVEL.value,
    )
    extra_fields = {key: event_dict.pop(key) for key in list(event_dict.keys()) if key not in standard_fields}

    if correlation_id != DEFAULTS.correlation_id:
        extra_fields[LogKeys.CORRELATION_ID.value] = correlation_id

    if extra_fields:
        event_dict[LogKeys.EXTRA.value] = extra_fields

    return event_dict


# ============================================================================
# Human-Readable Formatting
# ============================================================================


class HumanReadableFormatter:
    """Renders an event dict as a single console line (tests and CLI)."""

    def __init__(self, defaults: LogDefaults = DEFAULTS):
        self.defaults = defaults

    def __call__(self, _: WrappedLogger, __: str, event_dict: EventDict) -> str:
        """Format: HH:MM:SS [LEVEL] logger: message [key=value, ...] [id:xxxxxxxx]"""
        level = event_dict.get(LogKeys.LEVEL.value, "info").upper()
        logger_name = self.format_logger_name(event_dict.get(LogKeys.LOGGER.value, ""))
        message = event_dict.get(LogKeys.MESSAGE.value, "")
        extra = dict(event_dict.get(LogKeys.EXTRA.value, {}))

        time_str = self.format_timestamp(event_dict.get(LogKeys.TIMESTAMP.value, ""))
        corr_str = self.format_correlation_id(extra.pop(LogKeys.CORRELATION_ID.value, ""))
        extra_str = self.format_extra_fields(extra)

        return f"{time_str} [{level}] {logger_name}: {message}{extra_str}{corr_str}"

    def format_field_value(self, value: Any) -> str:
        str_value = str(value)
        if len(str_value) > self.defaults.max_value_length:
            return f"{str_value[: self.defaults.max_value_length - 3]}..."
        return str_value

    def format_timestamp(self, timestamp_str: str) -> str:
        if not timestamp_str:
            return ""
        try:
            dt = datetime.fromisoformat(timestamp_str.replace("Z", "+00:00"))
            return dt.strftime("%H:%M:%S")
        except (ValueError, AttributeError):
            return timestamp_str.split("T")[1][:8] if "T" in timestamp_str else ""

    def format_correlation_id(self, correlation_id: str) -> str:
        if not correlation_id:
            return ""
        return f" [id:{correlation_id[: self.defaults.correlation_id_display_length]}]"

    def format_logger_name(self, logger_name: str) -> str:
        """Strip the package prefix, keeping at most the last two dotted parts."""
        if not logger_name.startswith(PACKAGE_PREFIX):
            return logger_name

        parts = logger_name.removeprefix(f"{PACKAGE_PREFIX}.").split(".")
        if len(parts) >= 2:
            return f"{parts[-2]}.{parts[-1]}"
        return parts[-1] if parts else logger_name

    def format_extra_fields(self, extra: dict[str, Any]) -> str:
        if not extra:
            return ""
        formatted_parts = [f"{key}={self.format_field_value(value)}" for key, value in extra.items()]
        return f" [{', '.join(formatted_parts)}]"


# ============================================================================
# Configuration
# ============================================================================


def configure_structlog(testing: bool = False) -> None:
    """Configure structured logging: JSON in production, one-line text when ``testing``."""
    log_level = os.environ.get("LOGGING_LEVEL", DEFAULTS.log_level).upper()
    level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(format="%(message)s", level=level, stream=sys.stdout)
    logging.getLogger().setLevel(level)

    processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.contextvars.merge_contextvars,
        _redact_sensitive_fields,
        _process_log_fields,
        structlog.processors.TimeStamper(fmt="iso"),
        HumanReadableFormatter() if testing else structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,  # type: ignore[arg-type]
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


# ============================================================================
# Public API
# ============================================================================


def clear_context_fields() -> None:
    structlog.contextvars.clear_contextvars()


def bind_context_vars(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def get_context_vars() -> dict[str, Any]:
    return structlog.contextvars.get_contextvars()


def bind_run_context(query: str, correlation_id: str | None = None) -> str:
    """Start a fresh logging context for one research run and return its correlation id."""
    clear_context_fields()
    correlation_id = correlation_id or new_correlation_id()
    bind_context_vars(correlation_id=correlation_id, query=query)
    return correlation_id


def get_logger(name: str = "") -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name or __name__)  # type: ignore
