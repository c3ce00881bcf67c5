"""API router that aggregates all routes."""

from fastapi import APIRouter

from atlantis.api.routes import access, backup, checkpoints, csrf, diagrams, health

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)
api_router.include_router(csrf.router)
api_router.include_router(diagrams.router)
api_router.include_router(checkpoints.router)
api_router.include_router(backup.router)
api_router.include_router(access.router)
