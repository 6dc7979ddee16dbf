"""
Structured logging configuration using structlog.

Provides JSON-formatted logs with contextual information bound per request.

Features:
- JSON structured logging for production
- Pretty console logging for development
- Request ID tracking
- Tags: every event carries a "tags" list (logger-level base tags plus the
  event's own), used to filter e.g. ["auth", "security"] events
- Redaction of token and credential values
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any, cast

import structlog
from structlog.types import EventDict, Processor

from app.config import settings

# Context variables for request tracking
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

# Event keys whose values must never reach the logs
SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "token",
        "code",
        "code_verifier",
        "client_secret",
        "authorization",
        "jwt_secret",
    }
)
REDACTED = "[REDACTED]"


def add_context_info(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add contextual information to log records."""
    request_id = request_id_ctx.get(None)
    if request_id and "request_id" not in event_dict:
        event_dict["request_id"] = request_id

    return event_dict


def merge_tags(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Merge logger-level base_tags with the event's tags into one "tags" list.

    Order is kept and duplicates dropped, so
    get_logger(__name__, base_tags=["auth"]).warning("x", tags=["auth", "security"])
    logs tags=["auth", "security"].
    """
    base_tags = event_dict.pop("base_tags", None) or []
    tags = event_dict.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]
    event_dict["tags"] = list(dict.fromkeys([*base_tags, *tags]))
    return event_dict


def redact_sensitive(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace token and credential values with a placeholder, including one level down."""
    for key, value in event_dict.items():
        if key.lower() in SENSITIVE_KEYS and value is not None:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: REDACTED if k.lower() in SENSITIVE_KEYS and v is not None else v
                for k, v in value.items()
            }
    return event_dict


def configure_logging() -> None:
    """
    Configure structured logging for the application.

    In development: Pretty console output with colors
    In production: JSON-formatted logs for aggregation
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_context_info,
        merge_tags,
        redact_sensitive,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.ENVIRONMENT == "development" and settings.LOG_FORMAT != "json":
        processors: list[Processor] = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True)
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper()),
    )

    # Reduce noise from third-party libraries
    if settings.ENVIRONMENT != "development":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__)
        **initial_values: Context bound to every event from this logger

    Returns:
        Configured logger instance

    Example:
        logger = get_logger(__name__)
        logger.info("session_revoked", token_id="abc", tags=["auth"])
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name, **initial_values))


def set_request_context(request_id: str | None) -> None:
    """
    Set context variables for the current request.

    Args:
        request_id: Unique request identifier
    """
    request_id_ctx.set(request_id)


def clear_request_context() -> None:
    """Clear context variables after request completes."""
    request_id_ctx.set(None)
