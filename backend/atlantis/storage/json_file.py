"""Flat JSON file storage backend (legacy).

All diagrams live in one JSON array. A single ``asyncio.Lock`` serializes
writers and makes readers wait for any in-flight write; writes go to a
temporary sibling file that is then renamed over the live file, so the live
file is never partially overwritten. The lock is process-local: two
processes sharing the file get no ordering guarantee.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from atlantis.storage.base import StorageBackend
from atlantis.storage.records import (
    CheckpointRecord,
    DiagramChanges,
    DiagramRecord,
    NewDiagram,
)
from atlantis.utils.emoji import DEFAULT_EMOJI
from atlantis.utils.identifiers import ensure_unique_id
from atlantis.utils.timestamps import to_naive_utc

DEFAULT_TITLE = "Untitled Diagram"


def _format_timestamp(value: datetime) -> str:
    return value.isoformat() + "Z"


def _parse_timestamp(value: Any, fallback: datetime) -> datetime:
    if not isinstance(value, str) or not value:
        return fallback
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(value))


def _to_record(doc: dict[str, Any], fallback: datetime) -> DiagramRecord:
    created_at = _parse_timestamp(doc.get("createdAt"), fallback)
    return DiagramRecord(
        id=str(doc["id"]),
        title=doc.get("title") or DEFAULT_TITLE,
        content=doc.get("content") if isinstance(doc.get("content"), str) else "",
        emoji=doc.get("emoji") or DEFAULT_EMOJI,
        is_favorite=bool(doc.get("isFavorite", False)),
        created_at=created_at,
        updated_at=_parse_timestamp(doc.get("updatedAt"), created_at),
    )


def _to_doc(record: DiagramRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "title": record.title,
        "content": record.content,
        "emoji": record.emoji,
        "createdAt": _format_timestamp(record.created_at),
        "updatedAt": _format_timestamp(record.updated_at),
        "isFavorite": record.is_favorite,
    }


def _sort_key(record: DiagramRecord) -> tuple[datetime, str]:
    return record.updated_at, record.id


class JsonFileStorageBackend(StorageBackend):
    """Diagrams stored as a single JSON array document."""

    name = "file"
    supports_checkpoints = False
    supports_contains_filter = False

    def __init__(self, path: Path):
        """Initialize the backend.

        Args:
            path: Location of the JSON document (created on first read).
        """
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        """Location of the JSON document."""
        return self._path

    # ========== Reads ==========

    async def get_diagram(self, diagram_id: str) -> DiagramRecord | None:
        for record in await self._snapshot():
            if record.id == diagram_id:
                return record
        return None

    async def list_diagrams(
        self,
        limit: int | None = None,
        offset: int = 0,
        search: str | None = None,
    ) -> tuple[list[DiagramRecord], int]:
        if search:
            raise ValueError("JSON file backend cannot filter server-side")

        records = sorted(await self._snapshot(), key=_sort_key, reverse=True)
        end = None if limit is None else offset + limit
        return records[offset:end], len(records)

    async def list_checkpoints(self, diagram_id: str, limit: int) -> list[CheckpointRecord]:
        # Only the current content is kept; it shares the diagram's id
        record = await self.get_diagram(diagram_id)
        if record is None or limit < 1:
            return []
        return [
            CheckpointRecord(
                id=record.id,
                diagram_id=record.id,
                content=record.content,
                updated_at=record.updated_at,
            )
        ]

    # ========== Writes ==========

    async def insert_diagram(self, diagram: NewDiagram) -> DiagramRecord:
        async with self._lock:
            records = await self._read()
            taken = {record.id for record in records}
            record = await self._build_record(diagram, taken)
            await self._write([record, *records])
            return record

    async def update_diagram(
        self,
        diagram_id: str,
        changes: DiagramChanges,
        now: datetime,
    ) -> DiagramRecord | None:
        async with self._lock:
            records = await self._read()
            record = next((r for r in records if r.id == diagram_id), None)
            if record is None:
                return None
            self._apply(record, changes, now)
            await self._write(records)
            return record

    async def append_checkpoint(
        self,
        diagram_id: str,
        content: str,
        changes: DiagramChanges,
        now: datetime,
        retain: int,
    ) -> tuple[CheckpointRecord, DiagramRecord] | None:
        # No history in this format: the content is overwritten in place
        async with self._lock:
            records = await self._read()
            record = next((r for r in records if r.id == diagram_id), None)
            if record is None:
                return None
            self._apply(record, changes, now)
            record.content = content
            await self._write(records)

        checkpoint = CheckpointRecord(
            id=record.id,
            diagram_id=record.id,
            content=record.content,
            updated_at=record.updated_at,
        )
        return checkpoint, record

    async def delete_diagram(self, diagram_id: str) -> bool:
        async with self._lock:
            records = await self._read()
            remaining = [r for r in records if r.id != diagram_id]
            if len(remaining) == len(records):
                return False
            await self._write(remaining)
            return True

    async def replace_all(self, diagrams: list[NewDiagram]) -> None:
        async with self._lock:
            taken: set[str] = set()
            records = []
            for diagram in diagrams:
                record = await self._build_record(diagram, taken)
                taken.add(record.id)
                records.append(record)
            await self._write(records)

    async def archive(self, suffix: str = ".bak") -> Path | None:
        """Rename the document out of the way (used after migration).

        Returns:
            The new path, or None if there was no document.
        """
        async with self._lock:
            if not self._path.exists():
                return None
            target = self._path.with_name(self._path.name + suffix)
            await aiofiles.os.replace(self._path, target)
            return target

    # ========== Private Helpers ==========

    async def _snapshot(self) -> list[DiagramRecord]:
        # Wait out any in-flight write, then read a consistent document
        async with self._lock:
            return await self._read()

    async def _read(self) -> list[DiagramRecord]:
        if not self._path.exists():
            await self._write([])
            return []

        async with aiofiles.open(self._path, "r", encoding="utf-8") as f:
            raw = await f.read()
        # Documents without timestamps date from the last write of the file
        stat = await aiofiles.os.stat(self._path)
        fallback = to_naive_utc(datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc))

        data = json.loads(raw) if raw.strip() else []
        if not isinstance(data, list):
            raise ValueError(f"Invalid diagrams file {self._path}: expected a JSON array")

        return [
            _to_record(doc, fallback) for doc in data if isinstance(doc, dict) and doc.get("id")
        ]

    async def _write(self, records: list[DiagramRecord]) -> None:
        await aiofiles.os.makedirs(self._path.parent, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        payload = json.dumps([_to_doc(r) for r in records], indent=2, ensure_ascii=False)
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(payload)
        try:
            await aiofiles.os.replace(tmp_path, self._path)
        except OSError:
            await aiofiles.os.remove(tmp_path)
            raise

    async def _build_record(self, diagram: NewDiagram, taken: set[str]) -> DiagramRecord:
        async def is_taken(candidate: str) -> bool:
            return candidate in taken

        return DiagramRecord(
            id=diagram.id or await ensure_unique_id(is_taken),
            title=diagram.title,
            content=diagram.content,
            emoji=diagram.emoji,
            is_favorite=diagram.is_favorite,
            created_at=diagram.created_at,
            updated_at=diagram.updated_at,
        )

    @staticmethod
    def _apply(record: DiagramRecord, changes: DiagramChanges, now: datetime) -> None:
        if changes.title is not None:
            record.title = changes.title
        if changes.content is not None:
            record.content = changes.content
        if changes.emoji is not None:
            record.emoji = changes.emoji
        if changes.is_favorite is not None:
            record.is_favorite = changes.is_favorite
        record.updated_at = now
