"""Pydantic schemas for the diagram API.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# ==================== Diagrams ====================


class DiagramResponse(CamelModel):
    """A diagram with its current content."""

    id: str
    title: str
    content: str
    emoji: str
    is_favorite: bool
    created_at: datetime
    updated_at: datetime


class DiagramListResponse(CamelModel):
    """Paginated diagram listing."""

    items: list[DiagramResponse]
    total: int
    has_more: bool
    next_offset: int


class DiagramCreate(CamelModel):
    """Request body for creating a diagram."""

    title: Optional[str] = None
    content: Optional[str] = None
    emoji: Optional[str] = None


class DiagramUpdate(CamelModel):
    """Request body for a partial diagram update."""

    title: Optional[str] = None
    content: Optional[str] = None
    emoji: Optional[str] = None
    is_favorite: Optional[bool] = None


class SuccessResponse(CamelModel):
    """Generic success marker."""

    success: bool = True


# ==================== Checkpoints ====================


class CheckpointResponse(CamelModel):
    """A content snapshot."""

    id: str
    diagram_id: str
    content: str
    updated_at: datetime


class CheckpointListResponse(CamelModel):
    """Snapshots of a diagram, newest first."""

    checkpoints: list[CheckpointResponse]


class CheckpointCreate(CamelModel):
    """Request body for creating a checkpoint."""

    content: Optional[str] = None
    title: Optional[str] = None
    emoji: Optional[str] = None
    is_favorite: Optional[bool] = None


class CheckpointCreateResponse(CamelModel):
    """A new checkpoint together with the refreshed diagram."""

    checkpoint: CheckpointResponse
    diagram: DiagramResponse


# ==================== Backup ====================


class BackupDiagram(CamelModel):
    """One diagram in a backup document."""

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    emoji: Optional[str] = None
    is_favorite: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RestoreResponse(CamelModel):
    """Result of restoring a backup."""

    success: bool = True
    count: int


# ==================== CSRF ====================


class CsrfTokenResponse(CamelModel):
    """The caller's anti-forgery token."""

    token: str
