"""Database models for Atlantis."""

from atlantis.db.models.diagram import TITLE_MAX_LENGTH, Diagram
from atlantis.db.models.diagram_content import DiagramContent

__all__ = [
    # Models
    "Diagram",
    "DiagramContent",
    # Constants
    "TITLE_MAX_LENGTH",
]
