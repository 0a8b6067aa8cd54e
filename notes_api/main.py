"""
Notes API — FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, the admission
       gate, exception handlers and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn notes_api.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌─────────────────┐      │
    │  │  CORS    │→│ Req ID   │→│  Logging        │      │
    │  └──────────┘ └──────────┘ └─────────────────┘      │
    │                                                     │
    │  Routes:                                            │
    │  ┌────────────────────┐ ┌──────────────────────┐    │
    │  │ /notes, /notes/{id}│ │ GET /health          │    │
    │  └────────────────────┘ └──────────────────────┘    │
    │  POST and PUT pass the admission gate first.        │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400 │ NotFound→404 │ Gate→429 │ DB→500  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → database ping → optional table creation
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notes_api import __version__
from notes_api.config import settings
from notes_api.database import create_tables, dispose_engine, ping_database
from notes_api.exceptions import (
    DatabaseError,
    NotesAPIError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
    error_response,
)
from notes_api.middleware.logging import RequestLoggingMiddleware
from notes_api.middleware.request_id import RequestIDMiddleware, request_id_var
from notes_api.rate_limit import AdmissionGate
from notes_api.routes import health, notes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup sequence:
        1. Setup logging
        2. Ping the database (SELECT 1); a failure aborts startup
        3. Create tables when DB_CREATE_TABLES is set

    Shutdown sequence:
        1. Dispose database engine (close all pooled connections)
    """
    setup_logging()
    logger.info("Notes API %s starting up...", __version__)

    try:
        await ping_database()
    except Exception:
        logger.critical("Database connection: failed", exc_info=True)
        await dispose_engine()
        raise
    logger.info("Database connection: success")

    if settings.db_create_tables:
        await create_tables()
        logger.info("Database tables ensured")

    logger.info(
        "Write admission: 1 request every %ss",
        app.state.admission_gate.interval_seconds,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Notes API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    return error_response(
        status_code,
        error,
        message,
        request_id=request_id_var.get(""),
        details=details,
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the ErrorResponse envelope.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400
        NotFoundError                            → 404
        RateLimitExceededError                   → 429 + Retry-After
        DatabaseError                            → 500 (generic message)
        NotesAPIError (base)                     → 500
        Exception (fallback)                     → 500
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed JSON, missing fields or bad query parameters."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return _error_response(
            400,
            "validation_error",
            "Request body or parameters are invalid",
            {"errors": errors},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error_response(
            429,
            "rate_limit_exceeded",
            exc.message,
            exc.context,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(NotesAPIError)
    async def handle_app_error(request: Request, exc: NotesAPIError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Fallback for errors outside RequestIDMiddleware, which renders the rest."""
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(admission_gate: Optional[AdmissionGate] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        admission_gate: Gate shared by the write routes. Defaults to one
            ticking every RATE_LIMIT_INTERVAL seconds.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Notes API",
        description="CRUD service for notes (id, title, content) backed by a relational table.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.admission_gate = admission_gate or AdmissionGate(settings.rate_limit_interval)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute: CORS → RequestID → Logging → routes
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    origins = settings.cors_origins_list
    allow_all = "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if allow_all else origins,
        # Credentials forbid a literal "*" origin, so "any origin" is a regex
        allow_origin_regex=".*" if allow_all else None,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_methods_list,
        allow_headers=settings.cors_headers_list,
        expose_headers=settings.cors_expose_headers_list
        + ["X-Request-ID", "X-Total-Count", "Retry-After"],
        max_age=settings.cors_max_age,
    )

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(health.router)

    return app


# uvicorn expects `notes_api.main:app` to be importable
app = create_app()
