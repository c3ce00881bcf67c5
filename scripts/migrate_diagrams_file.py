#!/usr/bin/env python3
"""
Diagram File Migration Script

Moves diagrams from the legacy flat JSON store (data/diagrams.json) into the
relational database, then backfills search vectors for any rows missing one.

Usage:
    python scripts/migrate_diagrams_file.py [options]

Options:
    --file              Path to the JSON store (default: settings.diagrams_file)
    --database-url      Target database URL (default: settings.database_url)
    --no-backup         Leave the JSON file in place instead of renaming it to .bak
    --backfill-only     Skip the migration and only backfill search vectors
    --verbose, -v       Log at DEBUG level

The migration aborts without changes when the database already holds diagrams.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from atlantis.core.config import settings
from atlantis.core.logging import get_logger, setup_logging
from atlantis.db import create_database_engine, create_session_maker
from atlantis.services.migration import (
    MigrationStatus,
    backfill_search_vectors,
    migrate_file_to_database,
)
from atlantis.storage import DatabaseStorageBackend, JsonFileStorageBackend

logger = get_logger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Migrate diagrams.json into the database")
    parser.add_argument("--file", type=Path, default=settings.resolved_diagrams_file)
    parser.add_argument("--database-url", default=settings.resolved_database_url)
    parser.add_argument("--no-backup", action="store_true")
    parser.add_argument("--backfill-only", action="store_true")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    engine = create_database_engine(args.database_url)
    target = DatabaseStorageBackend(create_session_maker(engine))

    try:
        await target.create_schema()

        if not args.backfill_only:
            source = JsonFileStorageBackend(args.file)
            result = await migrate_file_to_database(source, target, backup=not args.no_backup)
            if result.status == MigrationStatus.NO_SOURCE:
                print(f"No {args.file} found. Nothing to migrate.")
            elif result.status == MigrationStatus.TARGET_NOT_EMPTY:
                print("Database already has diagrams. Aborting migration.")
                return 1
            else:
                print(f"Migrated {result.migrated} diagrams.")
                if result.backup_path:
                    print(f"Backup saved to {result.backup_path}.")

        updated = await backfill_search_vectors(target)
        print(f"Backfilled search vectors for {updated} diagrams.")
        return 0
    finally:
        await engine.dispose()


def main() -> None:
    args = parse_args()
    setup_logging("DEBUG" if args.verbose else None)
    try:
        sys.exit(asyncio.run(run(args)))
    except Exception as e:
        logger.error("migration_failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
