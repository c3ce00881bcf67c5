"""Diagram API endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from atlantis.api.csrf import ensure_csrf_cookie, require_csrf
from atlantis.api.deps import get_repository
from atlantis.api.errors import translate_errors
from atlantis.core.logging import get_logger
from atlantis.schemas.diagram import (
    DiagramCreate,
    DiagramListResponse,
    DiagramResponse,
    DiagramUpdate,
    SuccessResponse,
)
from atlantis.services.diagrams import DEFAULT_PAGE_LIMIT, DiagramRepository
from atlantis.storage import DiagramChanges

logger = get_logger(__name__)

router = APIRouter(prefix="/diagrams", tags=["diagrams"])


@router.get("", response_model=DiagramListResponse, dependencies=[Depends(ensure_csrf_cookie)])
async def list_diagrams(
    limit: int = Query(DEFAULT_PAGE_LIMIT, description="Items per page (clamped to 1-100)"),
    offset: int = Query(0, description="Items to skip"),
    query: Optional[str] = Query(None, description="Substring search over title and content"),
    repository: DiagramRepository = Depends(get_repository),
) -> DiagramListResponse:
    """List diagrams, most recently updated first."""
    with translate_errors("GET /api/diagrams", "Failed to load diagrams"):
        page = await repository.list_page(limit=limit, offset=offset, query=query)

    return DiagramListResponse(
        items=[DiagramResponse.model_validate(item) for item in page.items],
        total=page.total,
        has_more=page.has_more,
        next_offset=page.next_offset,
    )


@router.post(
    "",
    response_model=DiagramResponse,
    status_code=201,
    dependencies=[Depends(require_csrf)],
)
async def create_diagram(
    data: DiagramCreate,
    repository: DiagramRepository = Depends(get_repository),
) -> DiagramResponse:
    """Create a diagram with its first content snapshot."""
    with translate_errors("POST /api/diagrams", "Unable to create diagram"):
        diagram = await repository.create(
            title=data.title,
            content=data.content,
            emoji=data.emoji,
        )

    logger.info("diagram_created", diagram_id=diagram.id)
    return DiagramResponse.model_validate(diagram)


@router.get("/{diagram_id}", response_model=DiagramResponse)
async def get_diagram(
    diagram_id: str,
    repository: DiagramRepository = Depends(get_repository),
) -> DiagramResponse:
    """Get a diagram with its current content."""
    with translate_errors("GET /api/diagrams/{id}", "Failed to load diagram"):
        diagram = await repository.get_by_id(diagram_id)

    if diagram is None:
        raise HTTPException(status_code=404, detail="Diagram not found")
    return DiagramResponse.model_validate(diagram)


@router.put(
    "/{diagram_id}",
    response_model=DiagramResponse,
    dependencies=[Depends(require_csrf)],
)
async def update_diagram(
    diagram_id: str,
    data: DiagramUpdate,
    repository: DiagramRepository = Depends(get_repository),
) -> DiagramResponse:
    """Update diagram metadata and/or its current content in place."""
    changes = DiagramChanges(
        title=data.title,
        content=data.content,
        emoji=data.emoji,
        is_favorite=data.is_favorite,
    )
    with translate_errors("PUT /api/diagrams/{id}", "Failed to update diagram"):
        diagram = await repository.update(diagram_id, changes)

    if diagram is None:
        raise HTTPException(status_code=404, detail="Diagram not found")
    return DiagramResponse.model_validate(diagram)


@router.delete(
    "/{diagram_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_csrf)],
)
async def delete_diagram(
    diagram_id: str,
    repository: DiagramRepository = Depends(get_repository),
) -> SuccessResponse:
    """Delete a diagram and all its checkpoints."""
    with translate_errors("DELETE /api/diagrams/{id}", "Failed to delete diagram"):
        deleted = await repository.delete_by_id(diagram_id)

    if not deleted:
        raise HTTPException(status_code=404, detail="Diagram not found")

    logger.info("diagram_deleted", diagram_id=diagram_id)
    return SuccessResponse()
