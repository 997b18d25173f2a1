"""
Structured logging for event relaying

JSON log lines carry the current request scope and trigger, so every log
line of one request (resolver warnings, discarded templates, delivery
failures) can be correlated.
"""

import json
import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Context of the current request scope / firing
relay_context: ContextVar[dict[str, Any]] = ContextVar("relay_context", default={})


def set_relay_context(**fields: Any) -> None:
    """Merge fields into the current relay context."""
    relay_context.set({**relay_context.get({}), **fields})


def clear_relay_context() -> None:
    relay_context.set({})


class RelayJsonFormatter(logging.Formatter):
    """
    JSON formatter with the relay context and structured extras
    """

    _CONTEXT_FIELDS = ("request_id", "trigger_id", "object_id")

    # Fields to extract from log record if present
    _EXTRA_FIELDS = (
        "event_id",
        "event_name",
        "status",
        "status_code",
        "duration_ms",
        "error_type",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_entry = self._build_base_entry(record)
        self._add_relay_context(log_entry)
        self._add_record_extras(log_entry, record)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)

    def _build_base_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

    def _add_relay_context(self, log_entry: dict[str, Any]) -> None:
        context = relay_context.get({})
        for key in self._CONTEXT_FIELDS:
            if context.get(key) is not None:
                log_entry[key] = context[key]

    def _add_record_extras(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self._EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)


class RelayContextFilter(logging.Filter):
    """
    Logging filter that adds relay context to log records
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = relay_context.get({})

        record.request_id = context.get("request_id", "-")
        record.trigger_id = context.get("trigger_id", "")

        return True


def setup_relay_logging(
    log_level: str = "INFO", json_format: bool = True, include_console: bool = True
) -> logging.Logger:
    """
    Set up structured logging for the ``eventrelay`` logger tree

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting for structured logs
        include_console: Include console handler

    Returns:
        The configured ``eventrelay`` logger
    """
    root_logger = logging.getLogger("eventrelay")
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if include_console:
        console_handler = logging.StreamHandler()
        console_handler.addFilter(RelayContextFilter())

        if json_format:
            console_handler.setFormatter(RelayJsonFormatter())
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s:%(trigger_id)s] - %(message)s"
            )
            console_handler.setFormatter(formatter)

        root_logger.addHandler(console_handler)

    return root_logger
