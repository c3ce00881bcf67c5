"""Plain records exchanged between the repository and storage backends."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class DiagramRecord:
    """A diagram's metadata together with its current content."""

    id: str
    title: str
    content: str
    emoji: str
    is_favorite: bool
    created_at: datetime
    updated_at: datetime


@dataclass
class CheckpointRecord:
    """A single content snapshot of a diagram."""

    id: str
    diagram_id: str
    content: str
    updated_at: datetime


@dataclass
class NewDiagram:
    """A diagram about to be written.

    ``id`` is None when the backend should allocate one; restore and
    migration pass the id they want preserved.
    """

    title: str
    content: str
    emoji: str
    created_at: datetime
    updated_at: datetime
    is_favorite: bool = False
    id: str | None = None


@dataclass
class DiagramChanges:
    """Partial update of a diagram. None means "leave unchanged"."""

    title: str | None = None
    content: str | None = None
    emoji: str | None = None
    is_favorite: bool | None = None


def build_search_vector(title: str, content: str) -> str:
    """Build the lowercase blob used for substring search."""
    return f"{title} {content}".lower()
