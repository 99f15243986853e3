"""
Main FastAPI application for the workshop service order backend.
Customers, vehicles, service orders and their stage pipeline.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workshop.config import settings
from workshop.exceptions import Conflict, InvalidTransition, NotFound, ValidationError, WorkshopError
from workshop.routes import customers, health, service_orders, stages, templates, users, vehicles
from workshop.services.database import close_db, init_db
from workshop.services.redis_client import close_redis, init_redis

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Conflict: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    ValidationError: 422,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""
    # Startup
    await init_db()
    if settings.REDIS_URL:
        try:
            await init_redis()
        except Exception as e:
            logger.warning(f"Customer cache disabled: {e}")

    yield
    # Shutdown
    await close_db()
    await close_redis()


app = FastAPI(
    title="Workshop Service Orders",
    description="Service order lifecycle backend for a vehicle workshop",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkshopError)
async def workshop_error_handler(request: Request, exc: WorkshopError):
    """Map domain errors to HTTP responses."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Register routes
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
app.include_router(customers.router, prefix="/api/v1/customers", tags=["customers"])
app.include_router(vehicles.router, prefix="/api/v1/vehicles", tags=["vehicles"])
app.include_router(service_orders.router, prefix="/api/v1/service-orders", tags=["service-orders"])
app.include_router(stages.router, prefix="/api/v1/service-orders", tags=["stages"])
app.include_router(templates.router, prefix="/api/v1/templates", tags=["templates"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Workshop Service Orders",
        "workshop": settings.WORKSHOP_NAME,
        "version": "1.0.0",
        "status": "running",
    }
