"""Create diagrams and diagram_contents tables.

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the diagram tables.

    diagram_contents rows cascade with their diagram.
    """
    op.create_table(
        "diagrams",
        sa.Column("id", sa.String(16), primary_key=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("emoji", sa.String(32), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("search_vector", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_diagrams_updated_at", "diagrams", ["updated_at"])

    op.create_table(
        "diagram_contents",
        sa.Column("id", sa.String(16), primary_key=True),
        sa.Column(
            "diagram_id",
            sa.String(16),
            sa.ForeignKey("diagrams.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "ix_diagram_contents_diagram_id_updated_at",
        "diagram_contents",
        ["diagram_id", "updated_at"],
    )


def downgrade() -> None:
    """Drop the diagram tables."""
    op.drop_index("ix_diagram_contents_diagram_id_updated_at", table_name="diagram_contents")
    op.drop_table("diagram_contents")
    op.drop_index("ix_diagrams_updated_at", table_name="diagrams")
    op.drop_table("diagrams")
