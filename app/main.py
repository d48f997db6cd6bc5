"""
FastAPI Application Entry Point

Restaurant QR menu and feedback API. Serves public menus by slug, collects
guest feedback and backs the admin panel.

Endpoints:
    - /api/menu: Public menus, search, item management and bulk import
    - /api/categories: Category management
    - /api/feedback: Guest feedback and statistics
    - /api/admin: Restaurant management and maintenance
    - /api/qr: Menu URLs for QR codes
    - /api/users: Admin panel accounts
    - /api/auth: Identity check
    - GET /api/health: System health check

Author: Your Name
Version: 1.0.0
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings, setup_logging
from app.database import engine, init_db
from app.routes import (
    admin_router,
    auth_router,
    categories_router,
    feedback_router,
    menu_router,
    qr_router,
    users_router,
)
from app.schemas import ErrorResponse, HealthResponse
from app.services.dialect import get_pool

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    if not await get_pool().test_connection():
        logger.warning("⚠️ Database connection test failed, requests may error")

    logger.info(f"✅ CORS origins: {settings.cors_allowed_origins_list}")
    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield

    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Digital menus behind QR codes, guest feedback and an admin panel API.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins_list,
    allow_origin_regex=settings.cors_origin_regex or None,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (
    menu_router,
    categories_router,
    feedback_router,
    admin_router,
    qr_router,
    users_router,
    auth_router,
):
    app.include_router(router)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍽️ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/api/health",
    }


@app.get(
    "/api/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check() -> HealthResponse:
    db_ok = await get_pool().test_connection()
    return HealthResponse(
        status="operational" if db_ok else "degraded",
        database="healthy" if db_ok else "unhealthy",
        environment=settings.env_mode.value,
        uptime_seconds=round(time.monotonic() - STARTED_AT, 1),
        timestamp=datetime.now(),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _error(status_code: int, message: str, headers=None, **extra: Any) -> JSONResponse:
    body = ErrorResponse(message=message, **extra)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Validation failures answer 400 with the first problem as the message."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"].removeprefix("Value error, "),
        }
        for error in exc.errors()
    ]
    message = errors[0]["message"] if errors else "Invalid request"
    return _error(400, message, errors=errors)


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
    return _error(400, "Request conflicts with existing data")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")
    return _error(
        500,
        str(exc) if settings.debug else "An unexpected error occurred",
        error="Internal Server Error",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
