"""FastAPI application server for the catalog data layer."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from satvik_catalog.api.admin_routes import router as admin_router
from satvik_catalog.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from satvik_catalog.api.routes import get_service, router, set_service
from satvik_catalog.config import get_settings
from satvik_catalog.exceptions import CatalogError
from satvik_catalog.observability.logging import configure_logging
from satvik_catalog.service import UnifiedDataService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Configures logging and builds the data service on startup, then closes
    the source adapters on shutdown. The catalog itself is loaded lazily on
    the first request.
    """
    settings = get_settings()

    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
    )

    logger.info("Starting catalog service...")

    if "*" in settings.cors_origins:
        logger.warning("CORS_ORIGINS allows all origins (*). Restrict to your storefront domains.")

    service = UnifiedDataService.from_settings(settings)
    set_service(service)
    app.state.service = service
    logger.info("Catalog service ready (data source: %s)", service.active_source.value)

    yield

    logger.info("Shutting down catalog service...")
    await service.close()
    set_service(None)
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description=(
            "Satvik Foods catalog API. "
            "Serves products, brands and categories from the configured data source."
        ),
        lifespan=lifespan,
    )

    # Domain exception handler: map CatalogError to JSON response
    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Security headers on every response
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(router)

    # Readiness check: 200 only when the active source answers
    @app.get("/ready", include_in_schema=False)
    async def ready():
        service = get_service()
        if await service.test_connection():
            return {"status": "ready", "data_source": service.active_source.value}
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "data_source": service.active_source.value},
        )

    # Admin API only when an admin key is set
    if settings.admin_api_key:
        app.include_router(admin_router)

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "satvik_catalog.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
