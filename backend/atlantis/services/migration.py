"""Migration from the legacy JSON file store to the relational store."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from atlantis.core.logging import get_logger
from atlantis.storage import DatabaseStorageBackend, JsonFileStorageBackend, NewDiagram

logger = get_logger(__name__)


class MigrationStatus(str, Enum):
    """Outcome of a file-to-database migration."""

    MIGRATED = "migrated"
    NO_SOURCE = "no_source"
    TARGET_NOT_EMPTY = "target_not_empty"


@dataclass
class MigrationResult:
    """Summary of a migration run."""

    status: MigrationStatus
    migrated: int = 0
    backup_path: Path | None = None


async def migrate_file_to_database(
    source: JsonFileStorageBackend,
    target: DatabaseStorageBackend,
    backup: bool = True,
) -> MigrationResult:
    """Copy every diagram from the JSON file into the database.

    Runs as a single transaction on the target. Refuses to run when the
    database already holds diagrams, so it is safe to call on every start.

    Args:
        source: The legacy JSON file backend.
        target: The relational backend to populate.
        backup: Rename the JSON file to ``diagrams.json.bak`` afterwards.

    Returns:
        What happened, with the number of diagrams migrated.
    """
    if not source.path.exists():
        logger.info("migration_skipped_no_source", path=str(source.path))
        return MigrationResult(status=MigrationStatus.NO_SOURCE)

    existing = await target.count_diagrams()
    if existing > 0:
        logger.warning("migration_aborted_target_not_empty", existing=existing)
        return MigrationResult(status=MigrationStatus.TARGET_NOT_EMPTY)

    records, _ = await source.list_diagrams()
    migrated = await target.insert_many(
        [
            NewDiagram(
                id=record.id,
                title=record.title,
                content=record.content,
                emoji=record.emoji,
                is_favorite=record.is_favorite,
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
            for record in records
        ]
    )

    backup_path = await source.archive() if backup else None

    logger.info(
        "migration_completed",
        migrated=migrated,
        backup_path=str(backup_path) if backup_path else None,
    )
    return MigrationResult(
        status=MigrationStatus.MIGRATED,
        migrated=migrated,
        backup_path=backup_path,
    )


async def backfill_search_vectors(target: DatabaseStorageBackend, batch_size: int = 500) -> int:
    """Fill in missing search vectors, logging how many rows changed."""
    updated = await target.backfill_search_vectors(batch_size=batch_size)
    if updated:
        logger.info("search_vectors_backfilled", count=updated)
    return updated
