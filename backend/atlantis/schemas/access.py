"""Schemas for the feature-flagged programmatic access API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from atlantis.schemas.diagram import CamelModel


class AccessDiagramSummary(BaseModel):
    """Diagram entry in an access API listing."""

    id: str
    title: str

    model_config = {"from_attributes": True}


class AccessPagination(CamelModel):
    """Page-number pagination block."""

    page: int
    limit: int
    total: int
    total_pages: int


class AccessListResponse(BaseModel):
    """Access API listing."""

    data: list[AccessDiagramSummary]
    pagination: AccessPagination


class AccessDiagramCreate(BaseModel):
    """Request body for creating a diagram through the access API."""

    title: Optional[str] = None
    content: Optional[str] = None
