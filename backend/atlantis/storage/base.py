"""Abstract storage capability interface for diagrams."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from atlantis.storage.records import (
    CheckpointRecord,
    DiagramChanges,
    DiagramRecord,
    NewDiagram,
)


class StorageBackend(ABC):
    """Atomic storage operations the diagram repository is built on.

    Every method is a single unit of work: implementations must make each
    call all-or-nothing and must never expose a half-applied state to a
    concurrent caller. Consistency rules (defaults, validation, clamping)
    belong to the repository, not here.
    """

    #: Short name reported by the health endpoint.
    name: str = "abstract"

    #: Whether content history is kept (False means one snapshot per diagram).
    supports_checkpoints: bool = False

    #: Whether ``list_diagrams`` can apply a substring filter server-side.
    supports_contains_filter: bool = False

    @abstractmethod
    async def insert_diagram(self, diagram: NewDiagram) -> DiagramRecord:
        """Insert a diagram and its first snapshot together.

        Allocates ids for the diagram (unless ``diagram.id`` is set) and the
        snapshot, each unique within its own table.
        """

    @abstractmethod
    async def get_diagram(self, diagram_id: str) -> DiagramRecord | None:
        """Fetch a diagram with its current content, or None."""

    @abstractmethod
    async def list_diagrams(
        self,
        limit: int | None = None,
        offset: int = 0,
        search: str | None = None,
    ) -> tuple[list[DiagramRecord], int]:
        """List diagrams, most recently updated first.

        Args:
            limit: Maximum items to return (None for all).
            offset: Items to skip.
            search: Lowercase substring to match against title and current
                content. Backends without ``supports_contains_filter`` raise
                ValueError when it is given.

        Returns:
            Tuple of (page items, total matching count).
        """

    @abstractmethod
    async def update_diagram(
        self,
        diagram_id: str,
        changes: DiagramChanges,
        now: datetime,
    ) -> DiagramRecord | None:
        """Apply metadata changes and edit the current content in place.

        ``updated_at`` is set to ``now`` even when nothing else changes.

        Returns:
            The refreshed diagram, or None if it does not exist.
        """

    @abstractmethod
    async def append_checkpoint(
        self,
        diagram_id: str,
        content: str,
        changes: DiagramChanges,
        now: datetime,
        retain: int,
    ) -> tuple[CheckpointRecord, DiagramRecord] | None:
        """Apply metadata changes and append a new content snapshot.

        Snapshots beyond ``retain`` are evicted, oldest first.

        Returns:
            Tuple of (new checkpoint, refreshed diagram), or None if the
            diagram does not exist.
        """

    @abstractmethod
    async def list_checkpoints(self, diagram_id: str, limit: int) -> list[CheckpointRecord]:
        """List up to ``limit`` snapshots of a diagram, newest first."""

    @abstractmethod
    async def delete_diagram(self, diagram_id: str) -> bool:
        """Delete a diagram and its snapshots. Returns False if absent."""

    @abstractmethod
    async def replace_all(self, diagrams: list[NewDiagram]) -> None:
        """Wipe every diagram and snapshot, then insert ``diagrams``."""
