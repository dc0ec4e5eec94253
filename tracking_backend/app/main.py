"""
FastAPI Application Entry Point.

This is the main application file for the Shipment Tracking Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from tracking_backend.app.core.config import settings
from tracking_backend.app.api.v1.router import router as api_v1_router
from tracking_backend.app.db.session import engine, Base
from tracking_backend.app.core.redis_client import ping_redis, close_redis
from tracking_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from tracking_backend.app.domain.tracking.exceptions import TrackingDomainError
from tracking_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    domain_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from tracking_backend.app.models.user import User  # noqa: F401
from tracking_backend.app.models.audit_log import AuditLog  # noqa: F401
from tracking_backend.app.models.location import Location  # noqa: F401
from tracking_backend.app.models.shipment import Shipment  # noqa: F401
from tracking_backend.app.models.shipment_event import ShipmentEvent  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging and creates database tables on startup.
    2. Closes the Redis connection on shutdown.
    """
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s started (API %s)", settings.app_name, settings.api_version)
    yield
    await close_redis()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Shipment submission, staff status updates and public waybill tracking",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(TrackingDomainError, domain_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Shipment Tracking API",
        "docs": "/docs",
        "health": "/health",
    }
