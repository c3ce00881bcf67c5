"""Checkpoint (content snapshot) endpoints for a diagram."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from atlantis.api.csrf import ensure_csrf_cookie, require_csrf
from atlantis.api.deps import get_repository
from atlantis.api.errors import translate_errors
from atlantis.core.logging import get_logger
from atlantis.schemas.diagram import (
    CheckpointCreate,
    CheckpointCreateResponse,
    CheckpointListResponse,
    CheckpointResponse,
    DiagramResponse,
)
from atlantis.services.diagrams import DiagramRepository
from atlantis.storage import DiagramChanges

logger = get_logger(__name__)

router = APIRouter(prefix="/diagrams/{diagram_id}/checkpoint", tags=["checkpoints"])


@router.get("", response_model=CheckpointListResponse, dependencies=[Depends(ensure_csrf_cookie)])
async def list_checkpoints(
    diagram_id: str,
    repository: DiagramRepository = Depends(get_repository),
) -> CheckpointListResponse:
    """List the retained checkpoints of a diagram, newest first."""
    with translate_errors("GET /api/diagrams/{id}/checkpoint", "Failed to load checkpoints"):
        diagram = await repository.get_by_id(diagram_id)
        if diagram is None:
            raise HTTPException(status_code=404, detail="Diagram not found")
        checkpoints = await repository.list_checkpoints(diagram_id)

    return CheckpointListResponse(
        checkpoints=[CheckpointResponse.model_validate(c) for c in checkpoints]
    )


@router.post(
    "",
    response_model=CheckpointCreateResponse,
    dependencies=[Depends(require_csrf)],
)
async def create_checkpoint(
    diagram_id: str,
    data: CheckpointCreate,
    repository: DiagramRepository = Depends(get_repository),
) -> CheckpointCreateResponse:
    """Append a new checkpoint, updating diagram metadata in the same transaction."""
    if not data.content:
        raise HTTPException(status_code=400, detail="Content is required")

    with translate_errors("POST /api/diagrams/{id}/checkpoint", "Failed to create checkpoint"):
        result = await repository.create_checkpoint(
            diagram_id,
            data.content,
            DiagramChanges(
                title=data.title,
                emoji=data.emoji,
                is_favorite=data.is_favorite,
            ),
        )

    if result is None:
        raise HTTPException(status_code=404, detail="Diagram not found")

    logger.info(
        "checkpoint_created",
        diagram_id=diagram_id,
        checkpoint_id=result.checkpoint.id,
    )
    return CheckpointCreateResponse(
        checkpoint=CheckpointResponse.model_validate(result.checkpoint),
        diagram=DiagramResponse.model_validate(result.diagram),
    )
