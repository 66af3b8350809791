"""
TeamClock - FastAPI Application
===============================

Main application factory with all routers and middleware.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from teamclock.api import companies, projects, sessions, stats, users
from teamclock.api.deps import get_uow
from teamclock.core.config import settings
from teamclock.core.database import close_db, init_db
from teamclock.core.exceptions import (
    ConflictError,
    NotFoundError,
    ResourceExhaustedError,
    TeamClockError,
    ValidationFailedError,
)
from teamclock.core.repositories import InMemoryStore, InMemoryUnitOfWork
from teamclock.core.schemas import ErrorResponse, HealthResponse

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if settings.is_production else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


# Domain error -> (HTTP status, error title)
ERROR_STATUS: dict[type[TeamClockError], tuple[int, str]] = {
    NotFoundError: (status.HTTP_404_NOT_FOUND, "Not Found"),
    ValidationFailedError: (status.HTTP_422_UNPROCESSABLE_CONTENT, "Validation Failed"),
    ConflictError: (status.HTTP_409_CONFLICT, "Conflict"),
    ResourceExhaustedError: (status.HTTP_503_SERVICE_UNAVAILABLE, "Service Unavailable"),
}


# ==========================================================================
# Lifespan
# ==========================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Startup:
    - Create tables when running on SQL storage

    Shutdown:
    - Close database connections
    """
    logger.info(
        "Starting TeamClock",
        version=settings.APP_VERSION,
        storage=settings.STORAGE_BACKEND,
    )

    if settings.STORAGE_BACKEND == "sql":
        await init_db()
        logger.info("Database initialized")

    yield

    logger.info("Shutting down TeamClock")
    if settings.STORAGE_BACKEND == "sql":
        await close_db()
        logger.info("Database connections closed")


# ==========================================================================
# App Factory
# ==========================================================================

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="TeamClock - team work sessions, time and token usage",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # ==========================================================================
    # Storage
    # ==========================================================================

    if settings.STORAGE_BACKEND == "memory":
        store = InMemoryStore()
        app.state.store = store
        app.dependency_overrides[get_uow] = lambda: InMemoryUnitOfWork(store)

    # ==========================================================================
    # Middleware
    # ==========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ==========================================================================
    # Exception Handlers
    # ==========================================================================

    @app.exception_handler(TeamClockError)
    async def domain_exception_handler(request: Request, exc: TeamClockError) -> JSONResponse:
        """Map domain errors to their HTTP status."""
        status_code, title = status.HTTP_400_BAD_REQUEST, "Bad Request"
        for error_type, mapped in ERROR_STATUS.items():
            if isinstance(exc, error_type):
                status_code, title = mapped
                break

        logger.info(
            "Request rejected",
            code=exc.code,
            status_code=status_code,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=title,
                detail=exc.message,
                code=exc.code,
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )

        if settings.is_development:
            detail = str(exc)
        else:
            detail = "An unexpected error occurred"

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Internal Server Error",
                detail=detail,
                code="INTERNAL_ERROR",
            ).model_dump(),
        )

    # ==========================================================================
    # Routers
    # ==========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            storage=settings.STORAGE_BACKEND,
        )

    # API v1 routes
    app.include_router(users.router, prefix=settings.API_V1_PREFIX)
    app.include_router(sessions.router, prefix=settings.API_V1_PREFIX)
    app.include_router(companies.router, prefix=settings.API_V1_PREFIX)
    app.include_router(projects.router, prefix=settings.API_V1_PREFIX)
    app.include_router(stats.router, prefix=settings.API_V1_PREFIX)

    # ==========================================================================
    # Root Endpoint
    # ==========================================================================

    @app.get("/", tags=["Root"])
    async def root() -> dict:
        """Root endpoint with API info."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs" if settings.is_development else "Disabled in production",
            "health": "/health",
            "api": settings.API_V1_PREFIX,
        }

    return app


# ==========================================================================
# Application Instance
# ==========================================================================

app = create_app()


# ==========================================================================
# Development Server
# ==========================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "teamclock.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level="info",
    )
