"""Health check schemas."""

from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    version: str
    storage: str  # "database" or "file"
    checkpoints: bool  # whether content history is kept
