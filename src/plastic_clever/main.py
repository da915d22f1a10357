"""
Plastic Clever Schools API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Background job scheduler
- Exception handlers for service and validation errors
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from plastic_clever.api import api_router
from plastic_clever.core.config import settings
from plastic_clever.core.database import async_session_maker, close_db, init_db
from plastic_clever.core.redis import close_redis, get_redis, init_redis
from plastic_clever.core.scheduler import (
    list_registered_jobs,
    pause_job,
    resume_job,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from plastic_clever.modules.notifications.jobs import register_notification_jobs
from plastic_clever.modules.shared import ServiceError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection
    - Database connection
    - Background job scheduler
    """
    logger.info(f"Starting Plastic Clever Schools API in {settings.python_env} mode...")

    try:
        await init_redis()
        logger.info("Redis connected")
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        logger.info("Database connected")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        register_notification_jobs()
        await start_scheduler()
    except Exception as e:
        logger.error(f"Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield

    logger.info("Shutting down Plastic Clever Schools API...")
    await stop_scheduler()
    await close_redis()
    await close_db()
    logger.info("Cleanup complete")


app = FastAPI(
    title="Plastic Clever Schools API",
    description="Backend for the Plastic Clever Schools programme",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)


# ============================================
# Exception Handlers
# ============================================


@app.exception_handler(ServiceError)
async def service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid data", "errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"message": exc.detail}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
    )


app.include_router(api_router, prefix="/api")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the Plastic Clever Schools API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check: database reachable, Redis optional."""
    async with async_session_maker() as session:
        await session.execute(text("SELECT 1"))
    redis = await get_redis()
    return {"status": "ready", "redis": "connected" if redis is not None else "unavailable"}


# ============================================
# Background Job Debug Endpoints
# ============================================
# Development only. In production, jobs run on their schedule.


def _require_development() -> None:
    if not settings.is_development:
        raise HTTPException(status_code=404, detail="Not Found")


@app.get("/debug/jobs", tags=["Debug"])
async def list_jobs():
    """List all registered background jobs and their status."""
    _require_development()
    return {"jobs": list_registered_jobs()}


@app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"])
async def trigger_job(job_id: str):
    """
    Manually trigger a background job, bypassing its schedule.

    Args:
        job_id: The ID of the job to trigger. Available jobs:
            - notifications_weekly_admin_digest

    Raises:
        HTTPException 400: If job_id is not found.
    """
    _require_development()
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@app.post("/debug/jobs/{job_id}/pause", tags=["Debug"])
async def pause_job_endpoint(job_id: str):
    _require_development()
    return {"job_id": job_id, "paused": pause_job(job_id)}


@app.post("/debug/jobs/{job_id}/resume", tags=["Debug"])
async def resume_job_endpoint(job_id: str):
    _require_development()
    return {"job_id": job_id, "resumed": resume_job(job_id)}
