"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from atlantis.api.deps import get_repository
from atlantis.api.router import api_router
from atlantis.core.config import settings
from atlantis.core.logging import (
    REQUEST_ID_HEADER,
    bind_request_context,
    get_logger,
    setup_logging,
)
from atlantis.db import engine
from atlantis.services.migration import backfill_search_vectors
from atlantis.storage import DatabaseStorageBackend

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Prepare storage on startup and release the engine on shutdown."""
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.version,
        host=settings.host,
        port=settings.port,
        storage_backend=settings.storage_backend,
    )

    # Resolve through overrides so tests can point startup at their own store
    repository_factory = app.dependency_overrides.get(get_repository, get_repository)
    backend = repository_factory().backend
    if isinstance(backend, DatabaseStorageBackend):
        if settings.auto_create_schema:
            await backend.create_schema()
        if settings.backfill_search_vectors:
            await backfill_search_vectors(backend)

    yield

    await engine.dispose()
    logger.info("shutting_down_application")


async def request_context(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Tag log entries with a request id and echo it on the response."""
    request_id = bind_request_context(
        request.headers.get(REQUEST_ID_HEADER),
        request.method,
        request.url.path,
    )
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Diagram editor backend with versioned diagram storage",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.middleware("http")(request_context)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


app = create_app()


def main() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "atlantis.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
