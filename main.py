"""BurkinaWatch Feeds - news, bulletin, events and geocoding API entry point."""

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.concurrency import asynccontextmanager
from fastapi.routing import APIRoute
from loguru import logger
from starlette.middleware.cors import CORSMiddleware

from burkinawatch.core.config import settings
from burkinawatch.core.domain.exceptions import DomainException
from burkinawatch.core.infrastructure.logging import setup_logging
from burkinawatch.core.interfaces.http.exceptions import (
    domain_exception_handler,
    global_exception_handler,
)
from burkinawatch.core.interfaces.http.routers import api_router
from burkinawatch.modules.feeds.application import dependencies as feeds_app_deps
from burkinawatch.modules.feeds.infrastructure import dependencies as feeds_infra_deps
from burkinawatch.modules.geocoding.application import (
    dependencies as geocoding_app_deps,
)
from burkinawatch.modules.geocoding.infrastructure import (
    dependencies as geocoding_infra_deps,
)

VERSION = "0.1.0"


def custom_generate_unique_id(route: APIRoute) -> str:
    """Generate unique operation IDs for OpenAPI."""
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


# Initialize Sentry if configured
if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(
        dsn=str(settings.SENTRY_DSN),
        enable_tracing=True,
        environment=settings.ENVIRONMENT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the per-process caches and start the refresh timers."""
    setup_logging()
    logger.info("Starting BurkinaWatch feeds backend...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    hub = feeds_infra_deps.build_feed_hub()
    app.state.feed_hub = hub
    app.state.geocode_resolver = geocoding_infra_deps.build_geocode_resolver()

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = feeds_infra_deps.build_scheduler(hub)
        scheduler.start()
    app.state.scheduler = scheduler

    yield

    logger.info("Shutting down BurkinaWatch feeds backend...")
    if scheduler is not None:
        await scheduler.stop()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description=(
        "Official news, citizen bulletins and upcoming events for Burkina Faso, "
        "aggregated from public feeds, plus reverse geocoding."
    ),
    version=VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    root_path=settings.ROOTPATH,
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)

# Dependency overrides (application -> infrastructure)
app.dependency_overrides[feeds_app_deps.get_feed_hub] = (
    feeds_infra_deps.get_feed_hub
)
app.dependency_overrides[geocoding_app_deps.get_geocode_resolver] = (
    geocoding_infra_deps.get_geocode_resolver
)

# Exception handlers
app.add_exception_handler(DomainException, domain_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# CORS middleware
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["health"])
async def health_check(request: Request):
    """Liveness plus cache state of every domain.

    Status is "degraded" when the last refresh of some domain had to fall
    back to stale or curated data, "healthy" otherwise.
    """
    hub = getattr(request.app.state, "feed_hub", None)
    resolver = getattr(request.app.state, "geocode_resolver", None)
    scheduler = getattr(request.app.state, "scheduler", None)

    domains = hub.status() if hub is not None else {}
    degraded = any(
        isinstance(status.get("last_refresh"), dict)
        and status["last_refresh"].get("served") in ("fallback", "stale")
        for status in domains.values()
    )

    return {
        "status": "degraded" if degraded else "healthy",
        "environment": settings.ENVIRONMENT,
        "version": VERSION,
        "timezone": settings.TIMEZONE,
        "components": {
            "feeds": domains,
            "geocode": resolver.status() if resolver is not None else None,
            "scheduler": {"running": bool(scheduler and scheduler.running)},
        },
        "feature_flags": {
            "llm_enabled": settings.LLM_ENABLED,
            "image_enrichment_enabled": settings.IMAGE_ENRICHMENT_ENABLED,
            "scheduler_enabled": settings.SCHEDULER_ENABLED,
        },
    }


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to BurkinaWatch Feeds API",
        "docs": f"{settings.API_V1_STR}/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.SERVER_PORT,
        reload=settings.ENVIRONMENT == "local",
    )
