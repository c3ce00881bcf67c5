"""Health check endpoint."""

from fastapi import APIRouter, Depends

from atlantis.api.deps import get_repository
from atlantis.core.config import settings
from atlantis.schemas.health import HealthResponse
from atlantis.services.diagrams import DiagramRepository

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    repository: DiagramRepository = Depends(get_repository),
) -> HealthResponse:
    """Check application health.

    Returns:
        Health status, application version and active storage backend.
    """
    return HealthResponse(
        status="ok",
        version=settings.version,
        storage=repository.backend.name,
        checkpoints=repository.backend.supports_checkpoints,
    )
