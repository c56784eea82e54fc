"""
PawSpot API — FastAPI Application Factory
==========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn pawspot.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware Chain:                                   │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────────────┐ │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│    CORS      │ │
    │  └──────────┘ └──────────┘ └──────┘ └──────────────┘ │
    │                                                      │
    │  Routes:                                             │
    │  ┌──────────────────┐ ┌──────────────┐ ┌──────────┐  │
    │  │ /api/v1/locations│ │ /uploads/... │ │ /health  │  │
    │  └──────────────────┘ └──────────────┘ └──────────┘  │
    │                                                      │
    │  Exception Handlers → {"success": false, "error": …} │
    │  ┌────────────────────────────────────────────────┐  │
    │  │ Validation/Upload→400 │ NotFound→404 │ else→500│  │
    │  └────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging → upload directory → ready
    Shutdown:  dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pawspot import __version__
from pawspot.config import settings
from pawspot.database import dispose_engine
from pawspot.exceptions import PawSpotError
from pawspot.middleware.logging import RequestLoggingMiddleware
from pawspot.middleware.request_id import RequestIDMiddleware, request_id_var
from pawspot.routes import health, locations, uploads

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server Error"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] pawspot.services.location_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that report every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("PawSpot API %s starting up...", __version__)

    uploads_dir = Path(settings.file_upload_path)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Upload directory: %s", uploads_dir.resolve())

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("PawSpot API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _format_request_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        # loc is ("body", "averageRating") / ("path", "location_id") / ("body",)
        location = [str(part) for part in error.get("loc", ())[1:]]
        prefix = f"{'.'.join(location)}: " if location else ""
        messages.append(f"{prefix}{error.get('msg', 'Invalid value')}")
    return ", ".join(messages) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        PawSpotError subclasses  → their status_code (400 / 404 / 500)
        RequestValidationError   → 400 (malformed JSON body, wrong types)
        HTTPException            → its status (unknown route, bad method)
        Exception (fallback)     → 500 "Server Error"

    5xx responses never carry driver or OS details; those are logged with
    the request ID.
    """

    @app.exception_handler(PawSpotError)
    async def handle_app_error(request: Request, exc: PawSpotError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid, type(exc).__name__, exc.message, exc.context,
            )
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = _format_request_errors(exc)
        logger.warning("[%s] Request validation error: %s", request_id_var.get(""), message)
        return error_response(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return error_response(500, SERVER_ERROR_MESSAGE)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers."""
    app = FastAPI(
        title="PawSpot API",
        description=(
            "Pet-friendly location directory: create, browse, filter and "
            "photograph places that welcome dogs, cats and other animals."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in reverse order of addition:
    # RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(locations.router)
    app.include_router(uploads.router)
    app.include_router(health.router)

    return app


# uvicorn pawspot.main:app
app = create_app()
