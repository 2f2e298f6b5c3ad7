"""
Structured logging configuration using structlog.

Everything bound with ``bind_context`` (request id, user id, task name) is
kept in structlog's contextvars and merged into every line logged from the
same request or job.
"""

import logging
import sys
from typing import Any, cast

import structlog
from structlog.types import Processor

from freightdesk.config import settings


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
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.ENVIRONMENT == "development":
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

    if settings.ENVIRONMENT != "development":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    # Statements would otherwise carry token hashes into the log
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a logger for ``name`` (typically ``__name__``)."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))


def bind_context(**kwargs: Any) -> None:
    """
    Bind context to every subsequent log line of this request or job.

    Example:
        bind_context(task="refresh_token_cleanup")
        logger.info("refresh_tokens_cleaned_up", deleted=3)  # includes task
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def set_request_context(request_id: str) -> None:
    """Start a request's log context, dropping anything left by a previous one."""
    structlog.contextvars.clear_contextvars()
    bind_context(request_id=request_id)


def clear_request_context() -> None:
    """Clear the log context after the request completes."""
    structlog.contextvars.clear_contextvars()
