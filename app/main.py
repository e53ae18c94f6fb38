"""
Blog API — FastAPI Application Factory
========================================

What:  Builds the FastAPI application: logging, lifespan, middleware,
       exception handlers and routers.
Who:   uvicorn (`uvicorn app.main:app`); tests call create_app() directly.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware (outermost first):                               │
    │  RequestID → AccessLog → RateLimit → BodyLimit → GZip → CORS │
    │                                                              │
    │  Routers (inclusion order matters):                          │
    │  submissions → blogs → comments → health                     │
    │                                                              │
    │  Exception Handlers:                                         │
    │  Validation→400  NotFound→404  Conflict→409  RateLimit→429   │
    │  Media→500 (with detail)  Database→500  Exception→500        │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, check configuration, open the database
              pool (unless one was already attached to app.state)
    Shutdown: dispose the pool this process opened
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import Database
from app.exceptions import (
    BlogAPIError,
    ConflictError,
    DatabaseError,
    MediaServiceError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)
from app.middleware import (
    BodySizeLimitMiddleware,
    RateLimitMiddleware,
    RequestIDLogFilter,
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    request_id_var,
)
from app.routes import blogs, comments, health, submissions

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configures the root logger once for the whole process.

    Format: 2024-05-01T09:30:00 [INFO] app.services.blog_service [a1b2c3d4] Blog ... created
    The request id comes from RequestIDLogFilter ("-" outside a request).
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Per-operation chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Blog API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Reads still work without Cloudinary; image uploads will fail
        logger.warning("Configuration warning: %s", str(e))

    database: Optional[Database] = getattr(app.state, "database", None)
    owns_database = database is None
    if owns_database:
        database = Database()
        app.state.database = database
    database.connect()
    logger.info("Database pool ready")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Blog API shutting down...")
    if owns_database:
        await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    errors: Optional[List[Dict[str, Any]]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"error": error, "message": message}
    if details:
        content["details"] = details
    if errors:
        content["errors"] = errors
    content["request_id"] = request_id_var.get("")
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def field_errors_from(exc: RequestValidationError) -> List[Dict[str, str]]:
    """Flattens pydantic errors to [{field, message}] (field = last path element)."""
    errors = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        message = str(err.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": str(loc[-1]) if loc else None, "message": message})
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps the exception hierarchy onto HTTP responses.

    Every body has the shape {error, message, details?, errors?, request_id}.
    Database and unexpected errors never expose their context to the client.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error on %s: %s", request.url.path, exc.message)
        return error_response(
            400, "validation_error", exc.message, details=exc.context, errors=exc.errors
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = field_errors_from(exc)
        logger.warning("Request validation failed on %s: %s", request.url.path, errors)
        return error_response(
            400, "validation_error", "Validation failed", details={"errors": errors}, errors=errors
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.warning("Conflict on %s: %s", request.url.path, exc.message)
        return error_response(409, "conflict", exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return error_response(
            429,
            "rate_limit_exceeded",
            exc.message,
            details={"retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(MediaServiceError)
    async def handle_media_error(request: Request, exc: MediaServiceError):
        # Covers CircuitBreakerOpenError; the underlying message is returned
        logger.error("Media service error: %s | Context: %s", exc.message, exc.context)
        return error_response(
            500, "media_service_error", exc.message, details={"detail": exc.detail}
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(BlogAPIError)
    async def handle_app_error(request: Request, exc: BlogAPIError):
        logger.error("Unhandled application error: %s | Context: %s", exc.message, exc.context)
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Blog API",
        description=(
            "Blog posts with embedded comments, Cloudinary-hosted images and a "
            "community submission queue."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware runs in reverse order of addition (last added = outermost)
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers refuse credentialed responses for a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(BodySizeLimitMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # /api/blog/submission must be matched before /api/blog/{blog_id}
    app.include_router(submissions.router)
    app.include_router(blogs.router)
    app.include_router(comments.router)
    app.include_router(health.router)

    return app


app = create_app()
