"""Database engine and session management."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from atlantis.core.config import settings


def ensure_sqlite_directory(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = make_url(url)
    if not parsed.drivername.startswith("sqlite"):
        return
    database = parsed.database
    if not database or database == ":memory:":
        return
    Path(database).parent.mkdir(parents=True, exist_ok=True)


def create_database_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, enabling SQLite pragmas where relevant.

    Args:
        url: SQLAlchemy database URL (e.g. ``sqlite+aiosqlite:///data/atlantis.db``).
        echo: Whether to echo SQL statements.

    Returns:
        The configured async engine.
    """
    ensure_sqlite_directory(url)
    is_sqlite = make_url(url).drivername.startswith("sqlite")

    new_engine = create_async_engine(
        url,
        echo=echo,
        connect_args={"timeout": 30} if is_sqlite else {},
        pool_pre_ping=True,
    )

    if is_sqlite:
        # Foreign keys are off by default in SQLite; snapshot cascade needs them
        @event.listens_for(new_engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Enable foreign keys and WAL mode for better concurrent access."""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA busy_timeout=30000")  # 30 second busy timeout
            cursor.close()

    return new_engine


def create_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the given engine."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_database_engine(settings.resolved_database_url, echo=settings.debug)

async_session_maker = create_session_maker(engine)
