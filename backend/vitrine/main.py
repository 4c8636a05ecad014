"""
Vitrine Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn vitrine.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌───────────────────────────────────────────────────────┐
    │                     FastAPI App                       │
    │                                                       │
    │  Middleware Chain:                                    │
    │  ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐  │
    │  │  Req ID  │→│ Logging  │→│   GZip   │→│   CORS   │  │
    │  └──────────┘ └──────────┘ └──────────┘ └──────────┘  │
    │                                                       │
    │  Routes:                                              │
    │  ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐  │
    │  │ /visit(s)│ │  /items  │ │  /files  │ │ /health  │  │
    │  └──────────┘ └──────────┘ └──────────┘ └──────────┘  │
    │                                                       │
    │  Exception Handlers:                                  │
    │  ┌─────────────────────────────────────────────────┐  │
    │  │ Validation→400 │ NotFound→404 │ Storage/DB→500  │  │
    │  └─────────────────────────────────────────────────┘  │
    └───────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (log errors, keep serving health checks)
    3. Build AppState (engine, blob store, services) unless one was injected
    4. Log startup complete

    Shutdown:
    1. Close the blob store HTTP client
    2. Dispose database engine (close all connections)
    3. Log shutdown complete
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from vitrine import __version__
from vitrine.config import settings
from vitrine.exceptions import (
    NotFoundError,
    RecordError,
    StorageError,
    ValidationError,
    VitrineError,
)
from vitrine.middleware.logging import RequestLoggingMiddleware
from vitrine.middleware.request_id import RequestIDMiddleware, request_id_var
from vitrine.routes import health, items, visits
from vitrine.state import AppState, build_app_state

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Called once during app startup, before any other initialization.
    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifecycle: startup and shutdown procedures.

    The state is built here only when create_app() was not handed one;
    whoever injected a state owns its shutdown.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Vitrine Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    owned = getattr(app.state, "vitrine", None) is None
    if owned:
        app.state.vitrine = build_app_state(settings)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Vitrine Backend shutting down...")
    if owned:
        await app.state.vitrine.close()
        app.state.vitrine = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError      → 400 Bad Request
        RequestValidationError → 400 (bad path parameter or JSON body)
        NotFoundError        → 404 Not Found
        StorageError         → 500 (upstream status/payload in details)
        RecordError          → 500 (upstream error in details)
        VitrineError (base)  → 500
        Exception (fallback) → 500, stack trace logged server-side only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed path parameter or body, reported in the same envelope as ValidationError."""
        rid = request_id_var.get("")
        logger.warning("[%s] Request validation error on %s", rid, request.url.path)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Request parameters or body are invalid.",
                "details": {"errors": jsonable_encoder(exc.errors())},
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        rid = request_id_var.get("")
        logger.error("[%s] Storage error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "storage_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(RecordError)
    async def handle_record_error(request: Request, exc: RecordError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "database_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(VitrineError)
    async def handle_vitrine_error(request: Request, exc: VitrineError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all for unexpected errors. The stack trace never reaches the client."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error: %s",
            rid,
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(state: Optional[AppState] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        state: Pre-built AppState. Tests pass one in because httpx's
               ASGITransport does not run the lifespan handler.

    Returns:
        Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Vitrine API",
        description=(
            "Image catalog with a visit counter. Items pair an uploaded image "
            "with a description; images live in a blob store, rows in a "
            "relational store."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.vitrine = state

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS → route

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,  # "*" origins cannot be combined with credentials
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(visits.router)
    app.include_router(items.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `vitrine.main:app` to be importable
app = create_app()


def run() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    uvicorn.run(
        "vitrine.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )
