"""Backup download and restore endpoints."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request, Response

from atlantis.api.csrf import issue_csrf_token, require_csrf
from atlantis.api.deps import get_repository
from atlantis.api.errors import translate_errors
from atlantis.core.logging import get_logger
from atlantis.schemas.diagram import BackupDiagram, DiagramResponse, RestoreResponse
from atlantis.services.diagrams import DiagramImport, DiagramRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/backup", tags=["backup"])

BACKUP_FILENAME = "atlantis-backup.json"


@router.get("")
async def download_backup(
    request: Request,
    repository: DiagramRepository = Depends(get_repository),
) -> Response:
    """Download every diagram with its current content as a JSON attachment."""
    with translate_errors("GET /api/backup", "Failed to generate backup"):
        diagrams = await repository.export_all()

    payload = [
        DiagramResponse.model_validate(d).model_dump(mode="json", by_alias=True)
        for d in diagrams
    ]
    response = Response(
        content=json.dumps(payload, indent=2, ensure_ascii=False),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{BACKUP_FILENAME}"'},
    )
    issue_csrf_token(request, response)
    return response


@router.post("", response_model=RestoreResponse, dependencies=[Depends(require_csrf)])
async def restore_backup(
    diagrams: list[BackupDiagram],
    repository: DiagramRepository = Depends(get_repository),
) -> RestoreResponse:
    """Replace all diagrams with the contents of a backup (destructive)."""
    with translate_errors("POST /api/backup", "Failed to restore backup"):
        count = await repository.restore_all(
            [
                DiagramImport(
                    id=d.id,
                    title=d.title,
                    content=d.content,
                    emoji=d.emoji,
                    is_favorite=d.is_favorite,
                    created_at=d.created_at,
                    updated_at=d.updated_at,
                )
                for d in diagrams
            ]
        )

    logger.info("backup_restored", count=count)
    return RestoreResponse(count=count)
