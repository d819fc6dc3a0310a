#!/usr/bin/env python3
"""
Structured Logging Module using structlog

This module provides structured logging for every cache tier:
- Request ID correlation through context variables
- Tier/outcome fields for filtering cache traffic
- JSON formatting for log aggregation
- Automatic credential redaction
- CACHE_DEBUG toggle that forces DEBUG level

Architectural Decision: structlog for production logging
- Context-aware logging with automatic field injection
- JSON output for log aggregation (ELK, Splunk, etc.)

Author: System Architect
Date: 2025-12-05
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from tiercache.core.config.settings import get_settings

# Context variable for request ID (task-local storage)
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

# Event fields whose values must never reach the log sink
_SENSITIVE_FIELDS = ("access_key", "secret", "password", "credential", "token")


def add_request_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add request ID to log event from context variable.
    """
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def redact_credentials(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Redact credential-like fields from log events.

    Any field whose name contains one of the sensitive markers
    (access_key, secret, password, credential, token) is replaced
    with "[REDACTED]".
    """
    for field in list(event_dict):
        lowered = field.lower()
        if any(marker in lowered for marker in _SENSITIVE_FIELDS) and event_dict[field]:
            event_dict[field] = "[REDACTED]"
    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Upper-case the log level."""
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Setup structured logging with structlog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to the configured level; CACHE_DEBUG=true forces DEBUG.
        log_format: Log format ('json' or 'console')
    """
    settings = get_settings()

    log_level = log_level or settings.logging.effective_level
    log_format = log_format or settings.logging.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )
    logging.getLogger().setLevel(getattr(logging, log_level.upper()))

    # boto3 is chatty at DEBUG; keep it at WARNING unless explicitly wanted
    for noisy in ("botocore", "boto3", "urllib3", "s3transfer"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_credentials,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("message", tier="metadata", cache_key="abc")
    """
    return structlog.get_logger(name)


def set_request_id(request_id: str) -> None:
    """Set request ID in context for the current request."""
    request_id_ctx.set(request_id)


def get_request_id() -> str | None:
    """Get current request ID from context."""
    return request_id_ctx.get()


def clear_request_id() -> None:
    """Clear request ID from context."""
    request_id_ctx.set(None)


def log_tier(
    logger: structlog.stdlib.BoundLogger,
    tier: str,
    outcome: str,
    message: str,
    level: str = "debug",
    **kwargs,
) -> None:
    """
    Log a cache tier event.

    Args:
        logger: Logger instance
        tier: Tier identifier ("local", "metadata", "object_store")
        outcome: Lookup outcome ("hit", "miss", "stale", ...)
        message: Log message
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional fields to log

    Usage:
        log_tier(logger, "local", "hit", "Local cache hit", cache_key="abc", age_ms=12)
    """
    log_func = getattr(logger, level.lower())
    log_func(
        message,
        tier=getattr(tier, "value", tier),
        outcome=getattr(outcome, "value", outcome),
        **kwargs,
    )
