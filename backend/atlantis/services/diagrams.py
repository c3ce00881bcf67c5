"""Diagram repository: CRUD, search, pagination and checkpoints.

The repository owns every consistency rule (defaults, validation, clamping,
checkpoint retention) and delegates atomic units of work to a
:class:`~atlantis.storage.base.StorageBackend`. It never logs: "not found" is
returned as ``None``/``False``, validation problems raise
:class:`DiagramValidationError`, and storage failures propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from atlantis.db.models import TITLE_MAX_LENGTH
from atlantis.storage import (
    CheckpointRecord,
    DiagramChanges,
    DiagramRecord,
    NewDiagram,
    StorageBackend,
    build_search_vector,
)
from atlantis.utils.emoji import random_emoji
from atlantis.utils.timestamps import to_naive_utc, utc_now

DEFAULT_TITLE = "Untitled Diagram"

DEFAULT_DIAGRAM_CONTENT = """graph TD
    A[Start] --> B{Is it working?}
    B -->|Yes| C[Great!]
    B -->|No| D[Debug]
    D --> B"""

# Snapshots kept per diagram; older ones are evicted on checkpoint
CHECKPOINT_RETENTION = 15

DEFAULT_PAGE_LIMIT = 24
MAX_PAGE_LIMIT = 100


class DiagramValidationError(Exception):
    """Raised when diagram input is rejected before storage is touched."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


@dataclass
class DiagramPage:
    """One page of a diagram listing."""

    items: list[DiagramRecord]
    total: int
    has_more: bool
    next_offset: int


@dataclass
class CheckpointResult:
    """A freshly created checkpoint and the diagram it belongs to."""

    checkpoint: CheckpointRecord
    diagram: DiagramRecord


@dataclass
class DiagramImport:
    """A full diagram record supplied to :meth:`DiagramRepository.restore_all`."""

    id: str
    title: str
    content: str
    emoji: str | None = None
    is_favorite: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


def clamp_limit(limit: int | None) -> int:
    """Clamp a page size into ``[1, MAX_PAGE_LIMIT]``."""
    if limit is None:
        return DEFAULT_PAGE_LIMIT
    return max(1, min(MAX_PAGE_LIMIT, limit))


def clamp_offset(offset: int | None) -> int:
    """Clamp an offset to be non-negative."""
    if offset is None:
        return 0
    return max(0, offset)


def normalize_query(query: str | None) -> str | None:
    """Trim and lowercase a search query; empty queries become None."""
    if query is None:
        return None
    normalized = query.strip().lower()
    return normalized or None


def validate_title(title: str | None) -> None:
    """Reject titles longer than the column allows.

    Raises:
        DiagramValidationError: If the title is too long.
    """
    if title is not None and len(title) > TITLE_MAX_LENGTH:
        raise DiagramValidationError(
            f"Title too long (max {TITLE_MAX_LENGTH} chars)", "TITLE_TOO_LONG"
        )


def normalize_changes(changes: DiagramChanges) -> DiagramChanges:
    """Read blank fields the way creation does.

    An empty title falls back to the default title and an empty emoji leaves
    the current one in place.
    """
    return DiagramChanges(
        title=DEFAULT_TITLE if changes.title == "" else changes.title,
        content=changes.content,
        emoji=changes.emoji or None,
        is_favorite=changes.is_favorite,
    )


class DiagramRepository:
    """Transactional diagram operations over a storage backend."""

    def __init__(self, backend: StorageBackend):
        """Initialize the repository.

        Args:
            backend: The storage backend every operation runs against.
        """
        self._backend = backend

    @property
    def backend(self) -> StorageBackend:
        """The storage backend in use."""
        return self._backend

    async def create(
        self,
        title: str | None = None,
        content: str | None = None,
        emoji: str | None = None,
    ) -> DiagramRecord:
        """Create a diagram together with its first content snapshot.

        Args:
            title: Title, "Untitled Diagram" when empty.
            content: Markup, a placeholder flowchart when omitted.
            emoji: Marker glyph, random when empty.

        Returns:
            The stored diagram.

        Raises:
            DiagramValidationError: If the title is too long.
        """
        validate_title(title)
        now = utc_now()
        return await self._backend.insert_diagram(
            NewDiagram(
                title=title or DEFAULT_TITLE,
                content=content if content is not None else DEFAULT_DIAGRAM_CONTENT,
                emoji=emoji or random_emoji(),
                created_at=now,
                updated_at=now,
            )
        )

    async def get_by_id(self, diagram_id: str) -> DiagramRecord | None:
        """Fetch a diagram with its current content, or None if absent."""
        return await self._backend.get_diagram(diagram_id)

    async def list_page(
        self,
        limit: int | None = DEFAULT_PAGE_LIMIT,
        offset: int | None = 0,
        query: str | None = None,
    ) -> DiagramPage:
        """List diagrams, most recently updated first.

        Args:
            limit: Page size, clamped to [1, 100].
            offset: Items to skip, clamped to >= 0.
            query: Optional case-insensitive substring over title and content.

        Returns:
            The requested page and pagination markers.
        """
        limit = clamp_limit(limit)
        offset = clamp_offset(offset)
        search = normalize_query(query)

        if search and not self._backend.supports_contains_filter:
            records, _ = await self._backend.list_diagrams()
            matches = [
                r for r in records if search in build_search_vector(r.title, r.content)
            ]
            items = matches[offset : offset + limit]
            total = len(matches)
        else:
            items, total = await self._backend.list_diagrams(
                limit=limit, offset=offset, search=search
            )

        next_offset = offset + len(items)
        return DiagramPage(
            items=items,
            total=total,
            has_more=next_offset < total,
            next_offset=next_offset,
        )

    async def update(self, diagram_id: str, changes: DiagramChanges) -> DiagramRecord | None:
        """Update metadata and edit the current content in place.

        Content edits do not create a new snapshot; ``updated_at`` always
        advances, even if no field changes value.

        Returns:
            The refreshed diagram, or None if it does not exist.

        Raises:
            DiagramValidationError: If the title is too long.
        """
        validate_title(changes.title)
        return await self._backend.update_diagram(
            diagram_id, normalize_changes(changes), utc_now()
        )

    async def create_checkpoint(
        self,
        diagram_id: str,
        content: str,
        changes: DiagramChanges | None = None,
    ) -> CheckpointResult | None:
        """Append a new content snapshot, evicting the oldest beyond the cap.

        Args:
            diagram_id: Diagram to checkpoint.
            content: Markup for the new snapshot.
            changes: Optional metadata to update in the same transaction
                (its ``content`` field is ignored).

        Returns:
            The new checkpoint and refreshed diagram, or None if absent.

        Raises:
            DiagramValidationError: If the title is too long.
        """
        changes = normalize_changes(changes or DiagramChanges())
        validate_title(changes.title)
        metadata = DiagramChanges(
            title=changes.title,
            emoji=changes.emoji,
            is_favorite=changes.is_favorite,
        )

        result = await self._backend.append_checkpoint(
            diagram_id, content, metadata, utc_now(), CHECKPOINT_RETENTION
        )
        if result is None:
            return None
        checkpoint, diagram = result
        return CheckpointResult(checkpoint=checkpoint, diagram=diagram)

    async def list_checkpoints(self, diagram_id: str) -> list[CheckpointRecord]:
        """List the retained snapshots of a diagram, newest first.

        Empty when the diagram has no snapshots or does not exist.
        """
        return await self._backend.list_checkpoints(diagram_id, CHECKPOINT_RETENTION)

    async def delete_by_id(self, diagram_id: str) -> bool:
        """Delete a diagram and its snapshots. Returns False if absent."""
        return await self._backend.delete_diagram(diagram_id)

    async def restore_all(self, diagrams: Sequence[DiagramImport]) -> int:
        """Replace every stored diagram with ``diagrams``.

        Ids, timestamps and favourite flags are preserved; missing timestamps
        default to now. This is a destructive replace, not a merge.

        Returns:
            Number of diagrams restored.

        Raises:
            DiagramValidationError: On a too-long title or duplicate ids.
        """
        seen: set[str] = set()
        for item in diagrams:
            validate_title(item.title)
            if item.id in seen:
                raise DiagramValidationError(
                    f"Duplicate diagram id in backup: {item.id}", "DUPLICATE_ID"
                )
            seen.add(item.id)

        now = utc_now()
        records = []
        for item in diagrams:
            created_at = to_naive_utc(item.created_at) if item.created_at else now
            updated_at = to_naive_utc(item.updated_at) if item.updated_at else created_at
            records.append(
                NewDiagram(
                    id=item.id,
                    title=item.title,
                    content=item.content,
                    emoji=item.emoji or random_emoji(),
                    is_favorite=item.is_favorite,
                    created_at=created_at,
                    updated_at=updated_at,
                )
            )

        await self._backend.replace_all(records)
        return len(records)

    async def export_all(self) -> list[DiagramRecord]:
        """Every diagram with its current content, newest first."""
        records, _ = await self._backend.list_diagrams()
        return records
