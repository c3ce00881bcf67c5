"""Mapping of repository errors onto HTTP responses."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException

from atlantis.core.logging import get_logger
from atlantis.services.diagrams import DiagramValidationError

logger = get_logger(__name__)


@contextmanager
def translate_errors(context: str, failure_detail: str) -> Iterator[None]:
    """Turn repository exceptions into HTTP errors.

    Validation errors become 400 with their message. Anything else is logged
    with the route context and the exception message only (request payloads
    are never logged) and becomes a 500 with ``failure_detail``.

    Args:
        context: Route identifier for the log entry, e.g. ``"PUT /api/diagrams/{id}"``.
        failure_detail: Client-facing message for unexpected failures.
    """
    try:
        yield
    except HTTPException:
        raise
    except DiagramValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except Exception as e:
        logger.error(
            "api_error",
            context=context,
            error_type=type(e).__name__,
            error=str(e),
        )
        raise HTTPException(status_code=500, detail=failure_detail) from e
