"""DiagramContent model: immutable content snapshots ("checkpoints")."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from atlantis.db.base import Base
from atlantis.utils.timestamps import utc_now

if TYPE_CHECKING:
    from atlantis.db.models.diagram import Diagram


class DiagramContent(Base):
    """A point-in-time body of diagram markup.

    The snapshot with the latest ``updated_at`` is the diagram's current content.
    """

    __tablename__ = "diagram_contents"

    # Primary key
    id: Mapped[str] = mapped_column(String(16), primary_key=True)

    # Foreign key
    diagram_id: Mapped[str] = mapped_column(
        String(16), ForeignKey("diagrams.id", ondelete="CASCADE"), nullable=False
    )

    # Markup
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Timestamps
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    # Relationships
    diagram: Mapped[Diagram] = relationship("Diagram", back_populates="contents")

    # Indexes
    __table_args__ = (
        Index("ix_diagram_contents_diagram_id_updated_at", "diagram_id", "updated_at"),
    )
