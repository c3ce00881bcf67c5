"""Programmatic access API, enabled by the ``enable_api_access`` flag."""

from __future__ import annotations

import math

from fastapi import APIRouter, Depends, HTTPException, Query

from atlantis.api.deps import get_repository
from atlantis.api.errors import translate_errors
from atlantis.core.config import settings
from atlantis.core.logging import get_logger
from atlantis.schemas.access import (
    AccessDiagramCreate,
    AccessDiagramSummary,
    AccessListResponse,
    AccessPagination,
)
from atlantis.schemas.diagram import DiagramResponse
from atlantis.services.diagrams import MAX_PAGE_LIMIT, DiagramRepository

logger = get_logger(__name__)


async def require_api_access() -> None:
    """Reject every request unless the access API is switched on."""
    if not settings.enable_api_access:
        raise HTTPException(status_code=403, detail="API Access Disabled")


router = APIRouter(
    prefix="/access",
    tags=["access"],
    dependencies=[Depends(require_api_access)],
)


@router.get("", response_model=AccessListResponse)
async def list_diagrams(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=MAX_PAGE_LIMIT, description="Items per page"),
    repository: DiagramRepository = Depends(get_repository),
) -> AccessListResponse:
    """List diagram ids and titles, most recently updated first."""
    with translate_errors("GET /api/access", "Internal Server Error"):
        result = await repository.list_page(limit=limit, offset=(page - 1) * limit)

    return AccessListResponse(
        data=[AccessDiagramSummary.model_validate(d) for d in result.items],
        pagination=AccessPagination(
            page=page,
            limit=limit,
            total=result.total,
            total_pages=math.ceil(result.total / limit),
        ),
    )


@router.post("", response_model=DiagramResponse, status_code=201)
async def create_diagram(
    data: AccessDiagramCreate,
    repository: DiagramRepository = Depends(get_repository),
) -> DiagramResponse:
    """Create a diagram from supplied markup."""
    if not data.content:
        raise HTTPException(status_code=400, detail="Content is required")

    with translate_errors("POST /api/access", "Internal Server Error"):
        diagram = await repository.create(title=data.title, content=data.content)

    logger.info("diagram_created", diagram_id=diagram.id, via="access_api")
    return DiagramResponse.model_validate(diagram)


@router.get("/{diagram_id}", response_model=DiagramResponse)
async def get_diagram(
    diagram_id: str,
    repository: DiagramRepository = Depends(get_repository),
) -> DiagramResponse:
    """Get a single diagram."""
    with translate_errors("GET /api/access/{id}", "Internal Server Error"):
        diagram = await repository.get_by_id(diagram_id)

    if diagram is None:
        raise HTTPException(status_code=404, detail="Diagram not found")
    return DiagramResponse.model_validate(diagram)
