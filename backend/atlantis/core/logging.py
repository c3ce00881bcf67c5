"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys
import uuid
from typing import Any

import structlog

from atlantis.core.config import settings

REQUEST_ID_HEADER = "X-Request-Id"

# Stdlib loggers that follow the application level
_FOLLOWER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _processors(debug: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        # JSON lines for log aggregation
        processors.extend(
            [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        )
    return processors


def setup_logging(level: str | None = None) -> None:
    """Configure structlog over the standard library logging module.

    Args:
        level: Log level name overriding ``settings.log_level`` (used by scripts).
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    structlog.configure(
        processors=_processors(settings.debug),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    for name in _FOLLOWER_LOGGERS:
        logging.getLogger(name).setLevel(log_level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def bind_request_context(request_id: str | None, method: str, path: str) -> str:
    """Attach request details to every log entry emitted while handling it.

    Args:
        request_id: Id supplied by the caller, or None to generate one.
        method: HTTP method.
        path: Request path.

    Returns:
        The request id in effect.
    """
    request_id = (request_id or "").strip() or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)
    return request_id


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name, usually ``__name__``.

    Returns:
        A bound structlog logger instance.
    """
    return structlog.get_logger(name)
