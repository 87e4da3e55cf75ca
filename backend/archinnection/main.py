"""
Archinnection Backend: FastAPI Application Factory
====================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers,
       and wires the lifespan (logging, config checks, storage, engine).
Who:   uvicorn (`uvicorn archinnection.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware: RequestID → RateLimit → Logging → Session   │
    │              → GZip → CORS                               │
    │                                                          │
    │  Routes: /api/auth  /api/profiles  /api/posts            │
    │          /api/connections  /api/jobs  pages  /storage    │
    │          /health                                         │
    │                                                          │
    │  Exception Handlers:                                     │
    │    Validation→400  Auth→401  Permission→403  NotFound→404│
    │    Conflict→409  Storage/DB→500  (429 from RateLimit)    │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from archinnection import __version__
from archinnection.config import settings
from archinnection.database import async_session_factory, dispose_engine
from archinnection.exceptions import (
    ArchinnectionError,
    DatabaseError,
    FileStorageError,
)
from archinnection.middleware.logging import RequestLoggingMiddleware
from archinnection.middleware.rate_limit import RateLimitMiddleware
from archinnection.middleware.request_id import RequestIDMiddleware, error_body, request_id_var
from archinnection.middleware.session import SessionMiddleware
from archinnection.routes import auth, connections, health, jobs, pages, posts, profiles, storage

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout
    (container runtimes capture stdout).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
    logging.getLogger("python_multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Warn about insecure configuration
        3. Create one directory per storage bucket
    Shutdown:
        1. Dispose database engine
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Archinnection Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Development defaults are allowed; the server still starts
        logger.warning("Configuration warning: %s", str(e))

    storage_root = Path(settings.storage_root)
    for bucket in settings.bucket_size_limits:
        (storage_root / bucket).mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage_root.resolve())

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Archinnection Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response formats.

    Handler hierarchy:
        DatabaseError           → 500, generic message, context logged only
        FileStorageError        → 500, context logged only
        ArchinnectionError      → exc.status_code (400/401/403/404/409)
        Exception (fallback)    → 500, stack trace logged only
    """

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        rid = request_id_var.get("")
        logger.error("[%s] File storage error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=500, content=error_body(exc, include_details=False))

    @app.exception_handler(ArchinnectionError)
    async def handle_app_error(request: Request, exc: ArchinnectionError):
        """Client-side errors: tell the user what is wrong."""
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            return JSONResponse(status_code=exc.status_code, content=error_body(exc, include_details=False))
        logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
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

def create_app(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        session_factory: Session factory used by SessionMiddleware; tests
                         pass one bound to their own engine.
    """
    app = FastAPI(
        title="Archinnection API",
        description=(
            "Professional network for architects: profiles, a feed of posts with likes "
            "and comments, job listings, and peer connections."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.session_factory = session_factory or async_session_factory

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition (last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,  # session cookie
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SessionMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(profiles.router)
    app.include_router(posts.router)
    app.include_router(connections.router)
    app.include_router(jobs.router)
    app.include_router(storage.router)
    app.include_router(health.router)
    app.include_router(pages.router)

    return app


app = create_app()
