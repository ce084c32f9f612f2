"""
FastAPI Application Entry Point.

This is the main application file for the Fleet Operations Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fleetops.app.core.config import settings
from fleetops.app.api.v1.router import router as api_v1_router
from fleetops.app.core.observability import ObservabilityMiddleware, CorrelationIdFilter
from fleetops.app.db.session import engine, Base
from fleetops.app.domain.errors import DomainError
from fleetops.app.core.exceptions import (
    domain_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from fleetops.app.models.user import User  # noqa: F401
from fleetops.app.models.audit_log import AuditLog  # noqa: F401
from fleetops.app.models.vehicle import Vehicle  # noqa: F401
from fleetops.app.models.driver import Driver  # noqa: F401
from fleetops.app.models.trip import Trip  # noqa: F401
from fleetops.app.models.maintenance_log import MaintenanceLog  # noqa: F401
from fleetops.app.models.fuel_log import FuelLog  # noqa: F401
from fleetops.app.models.expense import Expense  # noqa: F401

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] [%(correlation_id)s] %(message)s",
)
for handler in logging.getLogger().handlers:
    handler.addFilter(CorrelationIdFilter())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.app_name, settings.api_version)
    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Fleet operations backend: vehicles, drivers, trips, maintenance, fuel and expenses",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(DomainError, domain_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to Fleet Operations Backend API",
        "docs": "/docs",
        "health": "/health",
    }
