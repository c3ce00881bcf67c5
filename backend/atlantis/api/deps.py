"""FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from atlantis.core.config import settings
from atlantis.services.diagrams import DiagramRepository
from atlantis.storage import create_storage_backend


@lru_cache
def get_repository() -> DiagramRepository:
    """Dependency returning the process-wide diagram repository.

    The storage backend is chosen once, from ``settings.storage_backend``.
    """
    return DiagramRepository(create_storage_backend(settings))
