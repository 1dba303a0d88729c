"""
Muffin Vault Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers, routers and the
       static front-end; lifespan() validates configuration and owns the
       database engine.
Who:   uvicorn (`uvicorn muffin_vault.main:app`) or the `muffin-vault` script.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Access Log → GZip → CORS      │
    │                                                          │
    │  Routes:                                                 │
    │    /api/muffins  /api/muffins/update                     │
    │    /api/notes/available  /api/notes/buy  /api/notes/vault│
    │    /health       /  (static front-end)                   │
    │                                                          │
    │  Exception Handlers:                                     │
    │    PurchaseError → 400 │ StoreError, bad body, * → 500   │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate configuration; a missing DATABASE_URL or DATABASE_KEY
       raises ConfigurationError and the server does not start
    3. Create the database engine
    Shutdown:
    1. Dispose the engine
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
from fastapi.staticfiles import StaticFiles

from muffin_vault import __version__
from muffin_vault.config import settings
from muffin_vault.database import dispose_engine, init_engine
from muffin_vault.exceptions import (
    MuffinVaultError,
    PurchaseError,
    StoreError,
    StoreWriteError,
)
from muffin_vault.middleware.logging import RequestLoggingMiddleware
from muffin_vault.middleware.request_id import RequestIDMiddleware, request_id_var
from muffin_vault.routes import health, muffins, notes
from muffin_vault.services.balance_service import UPDATE_FAILED

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger for the whole application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (container runtimes collect it)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Validate configuration and manage the database engine.

    ConfigurationError is logged and re-raised: uvicorn then aborts startup,
    so a misconfigured server never accepts a request.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Muffin Vault backend %s starting up...", __version__)

    try:
        settings.validate_required()
    except MuffinVaultError as e:
        logger.error("Configuration error: %s", e.message)
        raise

    init_engine()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Muffin Vault backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# Path → (static message, code) for request bodies that fail validation
VALIDATION_FAILURES = {
    "/api/muffins/update": (UPDATE_FAILED, StoreWriteError.code),
}


def _error_body(message: str, code: str) -> dict:
    return {
        "error": message,
        "code": code,
        "request_id": request_id_var.get(""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy to HTTP responses.

    Handler hierarchy:
        PurchaseError  → 400 (InsufficientFundsError, NoNotesAvailableError)
        StoreError     → 500 (StoreReadError, StoreWriteError, NotFoundError)
        RequestValidationError → 500 (body missing, not JSON, or not integers)
        Exception      → 500 (anything unexpected)

    Store errors return the endpoint's static message only; the context
    (error type, affected ids) is logged server-side. A malformed body gets
    the same static message as a store failure on that endpoint and is never
    echoed back.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed body: generic failure, validation details to the log only."""
        rid = request_id_var.get("")
        message, code = VALIDATION_FAILURES.get(
            request.url.path, ("An unexpected error occurred", "internal_error")
        )
        logger.warning(
            "[%s] Malformed request on %s %s: %s",
            rid,
            request.method,
            request.url.path,
            [".".join(str(part) for part in err["loc"]) for err in exc.errors()],
        )
        return JSONResponse(status_code=500, content=_error_body(message, code))

    @app.exception_handler(PurchaseError)
    async def handle_purchase_error(request: Request, exc: PurchaseError):
        """A purchase precondition failed; nothing was written."""
        rid = request_id_var.get("")
        logger.info("[%s] Purchase refused: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=400, content=_error_body(exc.message, exc.code))

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        """Database failure: static message to the client, details to the log."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] Store error on %s %s: %s | Context: %s",
            rid,
            request.method,
            request.url.path,
            exc.message,
            exc.context,
            exc_info=exc.__cause__ is not None,
        )
        return JSONResponse(status_code=500, content=_error_body(exc.message, exc.code))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all; the stack trace is logged, never returned."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("An unexpected error occurred", "internal_error"),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def mount_static(app: FastAPI, directory: str) -> bool:
    """
    Serve the prebuilt front-end at "/" (index.html for the root path).

    Must run after the API routers are included: the mount matches every
    path, so anything registered later would be shadowed.

    Returns:
        True when mounted, False when the directory does not exist.
    """
    static_path = Path(directory)
    if not static_path.is_dir():
        logger.warning("Static directory %s not found; front-end not served", static_path.resolve())
        return False
    app.mount("/", StaticFiles(directory=str(static_path), html=True), name="static")
    return True


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance. The database engine is not
    created here but in lifespan(), after configuration is validated.
    """
    app = FastAPI(
        title="Muffin Vault API",
        description=(
            "Backend for the muffin game: balance and high score, and a vault "
            "of notes that are bought with muffins."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
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

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(muffins.router)
    app.include_router(notes.router)
    app.include_router(health.router)

    mount_static(app, settings.static_dir)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn on the configured address."""
    import uvicorn

    uvicorn.run(
        "muffin_vault.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
