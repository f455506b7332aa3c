"""
Campus Tasker Backend - FastAPI Application Factory
===================================================

What:  Builds the FastAPI application: middleware, exception handlers, routers.
Who:   uvicorn (`uvicorn tasker.main:app`) and the test suite (`create_app()`).

Application Layout:
    ┌───────────────────────────────────────────────────────────┐
    │                       FastAPI App                         │
    │  Middleware: RateLimit → RequestID → AccessLog → GZip → CORS
    │  Routers:    auth · users · tasks · reviews · transactions · health
    │  Handlers:   TaskerError subclasses → 400/401/403/404/409/500
    └───────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → production config check → wait for database
    Shutdown: dispose the engine's connection pool
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from tasker import __version__
from tasker.config import settings
from tasker.database import dispose_engine, wait_for_database
from tasker.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    TaskerError,
    ValidationError,
)
from tasker.middleware.logging import RequestLoggingMiddleware
from tasker.middleware.rate_limit import RateLimitMiddleware
from tasker.middleware.request_id import RequestIDMiddleware, request_id_var
from tasker.routes import auth, health, reviews, tasks, transactions, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, writing to stdout.

    Format: 2026-01-15T12:00:00 [INFO] tasker.services.task_service: Task ... accepted
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise; the access middleware already logs every request
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("%s %s starting (%s)", settings.app_name, __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving so /health and logs can explain what is wrong
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    await wait_for_database()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("%s shutting down...", settings.app_name)
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the TaskerError hierarchy onto HTTP responses.

        ValidationError         → 400
        AuthenticationError     → 401 (+ WWW-Authenticate: Bearer)
        PermissionDeniedError   → 403
        NotFoundError           → 404
        ConflictError           → 409
        DatabaseError           → 500 (generic message, context logged)
        TaskerError (other)     → 500
        Exception               → 500 (traceback logged)

    Rate limiting answers 429 inside its middleware, before routing.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return error_response(
            401,
            "unauthorized",
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        logger.info(
            "[%s] Policy %s refused caller %s",
            request_id_var.get(""),
            exc.context.get("policy"),
            exc.context.get("caller_id"),
        )
        return error_response(
            403,
            "forbidden",
            exc.message,
            {"action": exc.context.get("action"), "resource": exc.context.get("resource")},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return error_response(409, "conflict", exc.message, exc.context)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(TaskerError)
    async def handle_tasker_error(request: Request, exc: TaskerError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Assemble a fresh application.

    Each call gets its own middleware instances, so tests that build a new
    app also start with an empty rate-limit window.
    """
    app = FastAPI(
        title="Campus Tasker API",
        description=(
            "Campus task marketplace: post small paid tasks, accept and complete "
            "them, and rate each other afterwards."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Added in reverse: the last one added runs first on the way in
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(tasks.router)
    app.include_router(reviews.router)
    app.include_router(transactions.router)
    app.include_router(health.router)

    return app


app = create_app()
