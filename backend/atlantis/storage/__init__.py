"""Storage backends for diagrams."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from atlantis.core.config import Settings
from atlantis.storage.base import StorageBackend
from atlantis.storage.database import DatabaseStorageBackend
from atlantis.storage.json_file import JsonFileStorageBackend
from atlantis.storage.records import (
    CheckpointRecord,
    DiagramChanges,
    DiagramRecord,
    NewDiagram,
    build_search_vector,
)


def create_storage_backend(
    config: Settings,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> StorageBackend:
    """Build the backend selected by ``config.storage_backend``.

    Args:
        config: Application settings.
        session_maker: Session factory for the database backend; defaults to
            the application's global one.

    Returns:
        The configured storage backend.
    """
    if config.storage_backend == "file":
        return JsonFileStorageBackend(config.resolved_diagrams_file)

    if session_maker is None:
        from atlantis.db import async_session_maker

        session_maker = async_session_maker
    return DatabaseStorageBackend(session_maker)


__all__ = [
    "CheckpointRecord",
    "DatabaseStorageBackend",
    "DiagramChanges",
    "DiagramRecord",
    "JsonFileStorageBackend",
    "NewDiagram",
    "StorageBackend",
    "build_search_vector",
    "create_storage_backend",
]
