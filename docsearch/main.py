"""
Document Search Engine - FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI

from docsearch.api import create_api_router
from docsearch.core.config import Settings, get_settings
from docsearch.core.container import ServiceContainer, build_container
from docsearch.core.logging_config import configure_logging

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, container: Optional[ServiceContainer] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    A prebuilt container can be passed in to embed the engine with real
    collaborators or to share test fixtures.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan management"""
        logger.info("Starting document search engine", version=app.version, environment=settings.ENVIRONMENT)

        services = container or build_container(settings)
        app.state.container = services
        services.sweep_scheduler.start()

        if settings.EMBEDDING_AUTO_MIGRATE:
            try:
                await services.migration_service.migrate_if_needed()
            except Exception as e:
                logger.error("Embedding auto-migration failed to start", error=str(e))

        try:
            yield
        finally:
            logger.info("Shutting down document search engine")
            await services.shutdown()
            app.state.container = None

    app = FastAPI(
        title=settings.APP_NAME,
        description="Hybrid semantic and keyword document search with near-duplicate detection",
        version=settings.APP_VERSION,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        openapi_url="/openapi.json" if not settings.is_production() else None,
        lifespan=lifespan,
    )

    app.include_router(create_api_router(settings.API_PREFIX))

    @app.get("/health")
    async def health_check():
        """Basic health check endpoint"""
        return {
            "status": "healthy",
            "version": app.version,
            "environment": settings.ENVIRONMENT,
        }

    @app.get("/health/detailed")
    async def detailed_health_check():
        """Health of every wired service"""
        services = getattr(app.state, "container", None)
        if services is None:
            return {"status": "starting", "version": app.version}
        return {"version": app.version, **(await services.check_health())}

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "docsearch.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_config=None,
    )
