"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app (tests build their own)

2. Lifespan Events
   - startup: log configuration, report whether AI is configured
   - shutdown: close the HTTP clients of the AI and cover services

3. Exception Handlers
   - Domain errors (bookreview.exceptions) map to 422/404/409/403/502
   - Database errors map to a generic 500
   - Everything else maps to 500 (details only in debug mode)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from bookreview.config import get_settings
from bookreview.exceptions import (
    AuthorizationError,
    BookReviewError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from bookreview.routers import (
    books_router,
    favorites_router,
    recommendations_router,
    reviews_router,
)
from bookreview.services.ai import close_ai_service, get_ai_service
from bookreview.services.covers import close_cover_service

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Most specific class first; lookup walks this list in order
ERROR_STATUS_CODES: list[tuple[type[BookReviewError], int]] = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (AuthorizationError, 403),
    (ExternalServiceError, 502),
]


def status_code_for(exc: BookReviewError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 400


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
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"API version: {settings.api_version}")

    if get_ai_service().is_available():
        logger.info(f"AI recommendations enabled (model {settings.openai_model})")
    else:
        logger.warning("OpenAI API key not configured - AI recommendations disabled")

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    close_ai_service()
    close_cover_service()


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

Ratings, reviews, favorites and recommendations for a book catalog.

### Features
- **Reviews**: One 1-5 star review per user per book; every change
  updates the book's average rating and review count immediately
- **Favorites**: The input signal for recommendations
- **Recommendations**: Rule-based, plus best-effort AI suggestions

### Authentication
Bearer JWT issued by the account service (`sub` is the user id).
        """,
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(BookReviewError)
    async def domain_exception_handler(
        request: Request,
        exc: BookReviewError,
    ) -> JSONResponse:
        """Map a domain error to its HTTP status with {"detail": message}."""
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=status_code, content={"detail": exc.message})

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle SQLAlchemy database errors.

        Logs the actual error while hiding details from users.
        """
        logger.error(f"Database error: {exc}")
        return JSONResponse(
            status_code=500,
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
                status_code=500,
                content={"detail": str(exc)},
            )

        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred."},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(books_router, prefix=api_prefix)
    app.include_router(reviews_router, prefix=api_prefix)
    app.include_router(favorites_router, prefix=api_prefix)
    app.include_router(recommendations_router, prefix=api_prefix)

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

        Used by load balancers and monitoring. Reports whether the AI
        service is configured; it does not call it.
        """
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.api_version,
            "ai": {
                "configured": get_ai_service().is_available(),
                "model": settings.openai_model,
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    async def root() -> dict:
        """Root endpoint with API information."""
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
# This is what uvicorn imports: uvicorn bookreview.main:app

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
