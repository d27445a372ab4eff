"""
Scavenger Hunt Backend - FastAPI Application Factory
=====================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       the lifespan runs startup checks and shutdown cleanup.
Who:   uvicorn (`uvicorn scavenger.main:app`) and the HTTP test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐  │
    │  │  Rate Limit  │→│ Req ID   │→│  Access Log     │  │
    │  └──────────────┘ └──────────┘ └─────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────┐ ┌─────────┐ ┌────────────┐            │
    │  │ /auth/*  │ │ /users  │ │ /waypoints │            │
    │  └──────────┘ └─────────┘ └────────────┘            │
    │  ┌─────────────┐ ┌───────┐                          │
    │  │ /challenges │ │/health│                          │
    │  └─────────────┘ └───────┘                          │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400  Auth→401  Role→403  NotFound→404   │
    │  Conflict→409  RateLimit→429  Database/other→500    │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check → database readiness (retried)
              → default admin seeding
    Shutdown: dispose the connection pool
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from scavenger import __version__
from scavenger.config import settings
from scavenger.database import async_session_factory, dispose_engine, wait_for_database
from scavenger.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    RateLimitExceededError,
    ScavengerError,
    ValidationError,
)
from scavenger.middleware.logging import RequestLoggingMiddleware
from scavenger.middleware.rate_limit import RateLimitMiddleware
from scavenger.middleware.request_id import RequestIDMiddleware, request_id_var
from scavenger.routes import auth, challenges, health, users, waypoints
from scavenger.services.account_service import account_service
from scavenger.validation import violations_from_errors

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before any other startup work.

    Format: 2024-01-15T12:00:00 [INFO] scavenger.services.account_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers chatter at INFO on every request or query
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

async def seed_default_admin() -> None:
    """Create the configured admin account in its own transaction."""
    async with async_session_factory() as session:
        try:
            await account_service.ensure_default_admin(session)
            await session.commit()
        except ConflictError:
            # Another worker seeded it between our check and insert
            logger.info("Default admin seeded concurrently; nothing to do")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Scavenger Hunt Backend %s starting (%s)", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.critical("Configuration error: %s", str(e))
        raise

    await wait_for_database()

    if settings.seed_default_admin:
        await seed_default_admin()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Scavenger Hunt Backend shutting down...")
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
    content = {"error": error, "message": message, "request_id": request_id_var.get("") or None}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every application exception to exactly one status code.

    Handler hierarchy (Starlette picks the most specific class):
        ValidationError, RequestValidationError → 400 validation_error
        AuthenticationError (+ UnauthorizedError) → 401 unauthorized
        AuthorizationError                       → 403 forbidden
        NotFoundError                            → 404 not_found
        ConflictError                            → 409 conflict
        RateLimitExceededError                   → 429 rate_limit_exceeded
        DatabaseError                            → 500 server_error
        ScavengerError (base)                    → 500 server_error
        Exception (fallback)                     → 500 internal_server_error

    Stack traces and SQL are logged server-side, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        violations = violations_from_errors(exc.errors())
        logger.warning("[%s] Malformed request: %d violations", request_id_var.get(""), len(violations))
        return _error_response(
            400,
            "validation_error",
            f"{len(violations)} validation error{'s' if len(violations) != 1 else ''}",
            {"violations": violations},
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error_response(
            401, "unauthorized", exc.message, headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        return _error_response(403, "forbidden", exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error_response(409, "conflict", exc.message, exc.context)

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
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(ScavengerError)
    async def handle_application_error(request: Request, exc: ScavengerError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        codes = {404: "not_found", 405: "method_not_allowed"}
        return _error_response(
            exc.status_code,
            codes.get(exc.status_code, "http_error"),
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Scavenger Hunt API",
        description=(
            "Accounts, waypoint sequences and challenges for the scavenger hunt game. "
            "Every change is kept as a new version; deletes are soft."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in reverse order of addition:
    # RateLimit → RequestID → Logging → GZip → CORS → route
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

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(waypoints.router)
    app.include_router(challenges.router)
    app.include_router(health.router)

    return app


# uvicorn entry point: `scavenger.main:app`
app = create_app()
