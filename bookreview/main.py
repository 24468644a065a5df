"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() function returns configured app
   - Tests import the module-level instance and override dependencies

2. Lifespan Events
   - startup/shutdown logging; the schema is managed by Alembic

3. Middleware Stack
   - Rate limiting (slowapi)
   - CORS: Allow cross-origin requests

4. Exception Handlers
   - AppError subclasses → {"detail": message} with their status code
   - Database errors → generic 500, logged
   - Anything else → generic 500, logged with traceback
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from bookreview import __version__
from bookreview.config import get_settings
from bookreview.exceptions import AppError, InternalError
from bookreview.routers import (
    auth_router,
    books_router,
    reviews_router,
    users_router,
)
from bookreview.services.rate_limiter import limiter, rate_limit_exceeded_handler

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown
    """
    logger.info(f"Starting {settings.app_name} ({settings.environment})...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"API version: {settings.api_version}")
    logger.info(
        f"Token lifetimes - access: {settings.access_token_expire_minutes} min, "
        f"refresh: {settings.refresh_token_expire_days} days"
    )

    yield

    logger.info(f"Shutting down {settings.app_name}...")


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Book Review API

Register, add books to the catalog and review them.

### Features
- **Books**: Catalog CRUD, filtering and search
- **Reviews**: One review per user per book, with aggregated ratings
- **Users**: Profile, password change, own reviews

### Authentication
Obtain a token pair from `/auth/register` or `/auth/login` and send the
access token as `Authorization: Bearer <token>`. Exchange the refresh token
at `/auth/refresh` before the access token expires.

### Rate Limiting
Requests are rate limited per client IP.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Render domain errors raised by services and routers."""
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.detail}")

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=exc.headers,
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle SQLAlchemy database errors.

        Logs the actual error for debugging while hiding details from users.
        """
        logger.error(f"Database error: {exc}")
        return JSONResponse(
            status_code=InternalError.status_code,
            content={
                "detail": "A database error occurred. Please try again later."
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        if settings.debug:
            return JSONResponse(
                status_code=InternalError.status_code,
                content={"detail": str(exc)},
            )

        return JSONResponse(
            status_code=InternalError.status_code,
            content={"detail": InternalError.detail},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)
    app.include_router(books_router, prefix=api_prefix)
    app.include_router(reviews_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and healthy.",
    )
    async def health_check() -> dict:
        """
        Health check endpoint.

        Used by load balancers, container probes and monitoring.
        """
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    async def root() -> dict:
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# uvicorn bookreview.main:app

app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m bookreview.main

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bookreview.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
