"""Relational storage backend (async SQLAlchemy).

Each public method opens its own session and runs inside ``session.begin()``,
so a concurrent reader only ever sees the state before or after a whole
operation.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from atlantis.db.base import Base
from atlantis.db.models import Diagram, DiagramContent
from atlantis.storage.base import StorageBackend
from atlantis.storage.records import (
    CheckpointRecord,
    DiagramChanges,
    DiagramRecord,
    NewDiagram,
    build_search_vector,
)
from atlantis.utils.identifiers import ensure_unique_id


def _latest_content():
    """Correlated subquery selecting a diagram's current content."""
    return (
        select(DiagramContent.content)
        .where(DiagramContent.diagram_id == Diagram.id)
        .order_by(DiagramContent.updated_at.desc(), DiagramContent.id.desc())
        .limit(1)
        .correlate(Diagram)
        .scalar_subquery()
    )


def _to_record(diagram: Diagram, content: str | None) -> DiagramRecord:
    return DiagramRecord(
        id=diagram.id,
        title=diagram.title,
        content=content or "",
        emoji=diagram.emoji,
        is_favorite=diagram.is_favorite,
        created_at=diagram.created_at,
        updated_at=diagram.updated_at,
    )


def _to_checkpoint(snapshot: DiagramContent) -> CheckpointRecord:
    return CheckpointRecord(
        id=snapshot.id,
        diagram_id=snapshot.diagram_id,
        content=snapshot.content,
        updated_at=snapshot.updated_at,
    )


def _apply_metadata(diagram: Diagram, changes: DiagramChanges) -> None:
    if changes.title is not None:
        diagram.title = changes.title
    if changes.emoji is not None:
        diagram.emoji = changes.emoji
    if changes.is_favorite is not None:
        diagram.is_favorite = changes.is_favorite


class DatabaseStorageBackend(StorageBackend):
    """Diagrams and content snapshots in two related tables."""

    name = "database"
    supports_checkpoints = True
    supports_contains_filter = True

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        """Initialize the backend.

        Args:
            session_maker: Factory for the sessions each operation runs in.
        """
        self._session_maker = session_maker

    # ========== Reads ==========

    async def get_diagram(self, diagram_id: str) -> DiagramRecord | None:
        async with self._session_maker() as session:
            result = await session.execute(
                select(Diagram, _latest_content()).where(Diagram.id == diagram_id)
            )
            row = result.first()
            if row is None:
                return None
            return _to_record(row[0], row[1])

    async def list_diagrams(
        self,
        limit: int | None = None,
        offset: int = 0,
        search: str | None = None,
    ) -> tuple[list[DiagramRecord], int]:
        async with self._session_maker() as session, session.begin():
            # The window count is taken before LIMIT/OFFSET, in the same
            # statement as the page, so items and total always agree
            query = select(Diagram, _latest_content(), func.count().over())
            count_query = select(func.count()).select_from(Diagram)

            if search:
                condition = Diagram.search_vector.contains(search, autoescape=True)
                query = query.where(condition)
                count_query = count_query.where(condition)

            query = query.order_by(Diagram.updated_at.desc(), Diagram.id.desc())
            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)

            rows = (await session.execute(query)).all()
            if rows:
                total = rows[0][2]
            else:
                # Past the end (or nothing matches): no row carries the count
                total = (await session.execute(count_query)).scalar() or 0

            return [_to_record(diagram, content) for diagram, content, _ in rows], total

    async def list_checkpoints(self, diagram_id: str, limit: int) -> list[CheckpointRecord]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(DiagramContent)
                .where(DiagramContent.diagram_id == diagram_id)
                .order_by(DiagramContent.updated_at.desc(), DiagramContent.id.desc())
                .limit(limit)
            )
            return [_to_checkpoint(snapshot) for snapshot in result.scalars().all()]

    async def count_diagrams(self) -> int:
        """Count all stored diagrams."""
        async with self._session_maker() as session:
            result = await session.execute(select(func.count()).select_from(Diagram))
            return result.scalar() or 0

    # ========== Writes ==========

    async def create_schema(self) -> None:
        """Create any missing tables on this backend's database."""
        async with self._session_maker() as session, session.begin():
            connection = await session.connection()
            await connection.run_sync(Base.metadata.create_all)

    async def insert_diagram(self, diagram: NewDiagram) -> DiagramRecord:
        async with self._session_maker() as session, session.begin():
            row = await self._insert(session, diagram)
            return _to_record(row, diagram.content)

    async def update_diagram(
        self,
        diagram_id: str,
        changes: DiagramChanges,
        now: datetime,
    ) -> DiagramRecord | None:
        async with self._session_maker() as session, session.begin():
            diagram = await session.get(Diagram, diagram_id)
            if diagram is None:
                return None

            _apply_metadata(diagram, changes)
            latest = await self._latest_snapshot(session, diagram_id)

            if changes.content is not None:
                if latest is None:
                    snapshot_id = await ensure_unique_id(
                        self._id_taken(session, DiagramContent)
                    )
                    latest = self._new_snapshot(snapshot_id, diagram_id, changes.content, now)
                    session.add(latest)
                else:
                    latest.content = changes.content
                    latest.updated_at = max(now, latest.updated_at)

            content = latest.content if latest is not None else ""
            diagram.updated_at = now
            diagram.search_vector = build_search_vector(diagram.title, content)
            await session.flush()

            return _to_record(diagram, content)

    async def append_checkpoint(
        self,
        diagram_id: str,
        content: str,
        changes: DiagramChanges,
        now: datetime,
        retain: int,
    ) -> tuple[CheckpointRecord, DiagramRecord] | None:
        async with self._session_maker() as session, session.begin():
            diagram = await session.get(Diagram, diagram_id)
            if diagram is None:
                return None

            _apply_metadata(diagram, changes)

            # Newest-first order must stay total even on a coarse clock
            latest = await self._latest_snapshot(session, diagram_id)
            stamp = now
            if latest is not None and stamp <= latest.updated_at:
                stamp = latest.updated_at + timedelta(microseconds=1)

            snapshot_id = await ensure_unique_id(self._id_taken(session, DiagramContent))
            snapshot = self._new_snapshot(snapshot_id, diagram_id, content, stamp)
            session.add(snapshot)

            diagram.updated_at = stamp
            diagram.search_vector = build_search_vector(diagram.title, content)
            await session.flush()

            stale = await session.execute(
                select(DiagramContent.id)
                .where(DiagramContent.diagram_id == diagram_id)
                .order_by(DiagramContent.updated_at.desc(), DiagramContent.id.desc())
                .offset(retain)
            )
            stale_ids = list(stale.scalars().all())
            if stale_ids:
                await session.execute(
                    delete(DiagramContent).where(DiagramContent.id.in_(stale_ids))
                )

            return _to_checkpoint(snapshot), _to_record(diagram, content)

    async def delete_diagram(self, diagram_id: str) -> bool:
        async with self._session_maker() as session, session.begin():
            await session.execute(
                delete(DiagramContent).where(DiagramContent.diagram_id == diagram_id)
            )
            result = await session.execute(delete(Diagram).where(Diagram.id == diagram_id))
            return (result.rowcount or 0) > 0

    async def replace_all(self, diagrams: list[NewDiagram]) -> None:
        async with self._session_maker() as session, session.begin():
            await session.execute(delete(DiagramContent))
            await session.execute(delete(Diagram))
            await session.flush()
            for diagram in diagrams:
                await self._insert(session, diagram)

    async def insert_many(self, diagrams: list[NewDiagram]) -> int:
        """Insert several diagrams in one transaction without wiping.

        Returns:
            Number of diagrams inserted.
        """
        async with self._session_maker() as session, session.begin():
            for diagram in diagrams:
                await self._insert(session, diagram)
        return len(diagrams)

    async def backfill_search_vectors(self, batch_size: int = 500) -> int:
        """Fill in search vectors for rows written before they existed.

        Idempotent: only rows with a missing or empty vector are touched.

        Returns:
            Number of diagrams updated.
        """
        updated = 0
        while True:
            async with self._session_maker() as session, session.begin():
                result = await session.execute(
                    select(Diagram, _latest_content())
                    .where(or_(Diagram.search_vector.is_(None), Diagram.search_vector == ""))
                    .limit(batch_size)
                )
                rows = result.all()
                if not rows:
                    return updated
                for diagram, content in rows:
                    diagram.search_vector = build_search_vector(diagram.title, content or "")
                updated += len(rows)

    # ========== Private Helpers ==========

    async def _insert(self, session: AsyncSession, new: NewDiagram) -> Diagram:
        diagram_id = new.id or await ensure_unique_id(self._id_taken(session, Diagram))
        diagram = Diagram(
            id=diagram_id,
            title=new.title,
            emoji=new.emoji,
            is_favorite=new.is_favorite,
            search_vector=build_search_vector(new.title, new.content),
            created_at=new.created_at,
            updated_at=new.updated_at,
        )
        session.add(diagram)
        await session.flush()

        snapshot_id = await ensure_unique_id(self._id_taken(session, DiagramContent))
        session.add(self._new_snapshot(snapshot_id, diagram_id, new.content, new.updated_at))
        await session.flush()
        return diagram

    def _new_snapshot(
        self,
        snapshot_id: str,
        diagram_id: str,
        content: str,
        stamp: datetime,
    ) -> DiagramContent:
        return DiagramContent(
            id=snapshot_id,
            diagram_id=diagram_id,
            content=content,
            updated_at=stamp,
        )

    async def _latest_snapshot(
        self, session: AsyncSession, diagram_id: str
    ) -> DiagramContent | None:
        result = await session.execute(
            select(DiagramContent)
            .where(DiagramContent.diagram_id == diagram_id)
            .order_by(DiagramContent.updated_at.desc(), DiagramContent.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def _exists(session: AsyncSession, model: type[Diagram] | type[DiagramContent], key: str) -> bool:
        result = await session.execute(select(model.id).where(model.id == key))
        return result.first() is not None

    def _id_taken(
        self,
        session: AsyncSession,
        model: type[Diagram] | type[DiagramContent],
    ) -> Callable[[str], Awaitable[bool]]:
        async def is_taken(candidate: str) -> bool:
            return await self._exists(session, model, candidate)

        return is_taken
