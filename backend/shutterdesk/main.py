"""
ShutterDesk Backend - FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn shutterdesk.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware Chain:                                           │
    │  ┌──────────────┐ ┌──────────┐ ┌──────────┐                  │
    │  │  Rate Limit  │→│ Req ID   │→│ Logging  │→ GZip → CORS     │
    │  └──────────────┘ └──────────┘ └──────────┘                  │
    │                                                              │
    │  Routes:                                                     │
    │    auth · invoices · contact · portfolio · dashboard · health│
    │    oauth (if Google configured) · webhooks (if secret set)   │
    │                                                              │
    │  Exception Handlers:                                         │
    │    ShutterDeskError → its status_code/code                   │
    │    RequestValidationError → 400   SQLAlchemyError → 500      │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate configuration. A missing STRIPE_SECRET_KEY aborts startup.
    3. Log which optional integrations are active

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from shutterdesk import __version__
from shutterdesk.config import settings
from shutterdesk.database import dispose_engine
from shutterdesk.exceptions import (
    InvoiceCreationFailed,
    NotFoundError,
    PersistenceError,
    RateLimitExceededError,
    ShutterDeskError,
    ValidationError,
)
from shutterdesk.middleware.logging import RequestLoggingMiddleware
from shutterdesk.middleware.rate_limit import RateLimitMiddleware
from shutterdesk.middleware.request_id import RequestIDMiddleware, request_id_var
from shutterdesk.routes import auth, contact, dashboard, health, invoices, oauth, portfolio, webhooks

logger = logging.getLogger(__name__)

# Exceptions whose context dict is safe to show to the caller
PUBLIC_DETAILS = (ValidationError, NotFoundError, RateLimitExceededError, InvoiceCreationFailed)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("ShutterDesk Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")
        raise

    logger.info(
        "Google login: %s", "enabled" if settings.google_oauth_enabled else "disabled"
    )
    logger.info(
        "Stripe webhook: %s", "enabled" if settings.stripe_webhook_enabled else "disabled"
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("ShutterDesk Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def error_envelope(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "success": False,
        "error": message,
        "code": code,
        "requestId": _request_id(request),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def first_validation_message(exc: RequestValidationError) -> str:
    """The first failing rule, phrased for a person."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "missing":
        field = first.get("loc", ("",))[-1]
        return f"{field} is required"
    message = str(first.get("msg", "Invalid request"))
    prefix = "Value error, "
    if message.startswith(prefix):
        message = message[len(prefix):]
    return message


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to the JSON error envelope.

    Handler hierarchy:
        RequestValidationError  → 400 (first schema message)
        PersistenceError        → 500 (generic message; context logged only)
        RateLimitExceededError  → 429 + Retry-After
        ShutterDeskError (base) → exc.status_code / exc.code
        SQLAlchemyError         → 500 (generic message)
        HTTPException           → its status (unknown routes, bad methods)
        Exception (fallback)    → 500
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = first_validation_message(exc)
        logger.info("[%s] Rejected request body: %s", _request_id(request), message)
        return error_envelope(request, 400, message, ValidationError.code)

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        logger.error(
            "[%s] Persistence error: %s | Context: %s",
            _request_id(request), exc.message, exc.context,
        )
        return error_envelope(request, exc.status_code, exc.message, exc.code)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return error_envelope(
            request,
            exc.status_code,
            exc.message,
            exc.code,
            details=exc.context,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(ShutterDeskError)
    async def handle_app_error(request: Request, exc: ShutterDeskError):
        rid = _request_id(request)
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        details = exc.context if isinstance(exc, PUBLIC_DETAILS) else None
        return error_envelope(request, exc.status_code, exc.message, exc.code, details=details)

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Database error: %s", _request_id(request), str(exc), exc_info=True)
        fallback = PersistenceError()
        return error_envelope(request, fallback.status_code, fallback.message, fallback.code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_envelope(
            request,
            exc.status_code,
            str(exc.detail),
            "http_error",
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            _request_id(request),
            str(exc),
            exc_info=True,
        )
        return error_envelope(
            request,
            500,
            "An unexpected error occurred. Please try again or contact support.",
            "internal_server_error",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Optional routers are decided here, from the settings at call time:
    Google OAuth needs client id + secret, the Stripe webhook needs its
    signing secret.
    """
    app = FastAPI(
        title="ShutterDesk API",
        description=(
            "Backend for a photography studio site: portfolio, contact inquiries, "
            "owner and client dashboards, and Stripe invoicing."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(invoices.router)
    app.include_router(contact.router)
    app.include_router(portfolio.router)
    app.include_router(dashboard.router)
    app.include_router(health.router)

    if settings.google_oauth_enabled:
        app.include_router(oauth.router)
    if settings.stripe_webhook_enabled:
        app.include_router(webhooks.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
