"""
Structured logging configuration for the Standup Order Bot.

This module configures Structlog as the application's default logging system,
providing:
  - JSON output outside development for log aggregation
  - Human-readable colored output in development
  - Context propagation (request_id, conversation_key)
  - Integration with standard library logging
  - Redaction of bearer tokens and other secrets

Usage:
    from standup_bot.utils.logging import setup_logging, get_logger

    # At application startup:
    setup_logging(log_level="INFO", environment="development")

    # In any module:
    logger = get_logger(__name__)
    logger.info("order_computed", conversation_key="19:abc", participants=7)
"""

import logging
import re
import sys
import uuid
from typing import Any, Optional

import structlog
from structlog.types import EventDict, WrappedLogger


SERVICE_NAME = "standup-order-bot"

_REDACTED = "***REDACTED***"

_SENSITIVE_PATTERNS = [
    re.compile(r"(Bearer\s+[a-zA-Z0-9\-_.]+)"),
    re.compile(r"(eyJ[a-zA-Z0-9\-_]{10,}\.[a-zA-Z0-9\-_]{10,}\.[a-zA-Z0-9\-_]*)"),  # JWT
]

_SENSITIVE_KEYS = frozenset({
    "token", "secret", "password", "authorization", "credentials",
    "access_token", "bot_access_token", "app_password",
})


def _sanitize_value(value: Any) -> Any:
    """Redact sensitive values from log output."""
    if isinstance(value, str):
        for pattern in _SENSITIVE_PATTERNS:
            if pattern.search(value):
                return _REDACTED
    return value


def _sanitize_event_dict(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Structlog processor that redacts sensitive data from log events.

    Checks both key names and string values for sensitive patterns.
    """
    sanitized = {}
    for key, value in event_dict.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS):
            sanitized[key] = _REDACTED
        else:
            sanitized[key] = _sanitize_value(value)
    return sanitized


def _add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add application-level context to every log event."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _drop_color_message_key(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Remove uvicorn's duplicated 'color_message' key."""
    event_dict.pop("color_message", None)
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    environment: str = "development",
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Application environment (development, staging, production)
        json_output: Force JSON output (auto-detected from environment if None)
    """
    if json_output is None:
        json_output = environment in ("production", "staging")

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        _add_app_context,
        _drop_color_message_key,
        _sanitize_event_dict,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True, pad_event_to=40)

    stdlib_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicate output
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(stdlib_formatter)
    console_handler.setLevel(numeric_level)
    root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    for uvicorn_logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(uvicorn_logger_name)
        uvicorn_logger.handlers = [console_handler]
        uvicorn_logger.propagate = False

    # httpx logs every request at INFO; keep that out of the default output
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    logging.captureWarnings(True)


def get_logger(name: Optional[str] = None, **initial_context: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance, optionally pre-bound with context.

    Example:
        logger = get_logger(__name__, conversation_key="19:abc")
        logger.info("roster_fetched", members=5)
    """
    log = structlog.get_logger(name)
    if initial_context:
        log = log.bind(**initial_context)
    return log


def bind_contextvars(**kwargs: Any) -> None:
    """
    Bind context variables included in all subsequent log messages of the
    current async context (or thread).
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_contextvars(*keys: str) -> None:
    """Remove context variables from the current context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_contextvars() -> None:
    """Clear all context variables from the current context."""
    structlog.contextvars.clear_contextvars()


def generate_request_id() -> str:
    """Generate a short unique request ID."""
    return f"req-{uuid.uuid4().hex[:12]}"
