"""Database package for Atlantis."""

from atlantis.db.base import Base
from atlantis.db.session import async_session_maker, create_database_engine, create_session_maker, engine

__all__ = [
    "Base",
    "async_session_maker",
    "create_database_engine",
    "create_session_maker",
    "engine",
]
