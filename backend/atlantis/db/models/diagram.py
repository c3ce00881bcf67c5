"""Diagram model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from atlantis.db.base import Base
from atlantis.utils.timestamps import utc_now

if TYPE_CHECKING:
    from atlantis.db.models.diagram_content import DiagramContent

TITLE_MAX_LENGTH = 100


class Diagram(Base):
    """A named diagram whose markup lives in its content snapshots."""

    __tablename__ = "diagrams"

    # Primary key (short public id)
    id: Mapped[str] = mapped_column(String(16), primary_key=True)

    # Metadata
    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH), nullable=False, default="Untitled Diagram"
    )
    emoji: Mapped[str] = mapped_column(String(32), nullable=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Derived: lowercase title + current content, kept in sync on every write
    search_vector: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    # Relationships
    contents: Mapped[list[DiagramContent]] = relationship(
        "DiagramContent",
        back_populates="diagram",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Indexes
    __table_args__ = (
        Index("ix_diagrams_updated_at", "updated_at"),
    )
