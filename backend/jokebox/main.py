"""
Jokebox Backend: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers, and routers,
       and returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn jokebox.main:app) and by the test suite,
       which builds a fresh app per test.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  Rate Limit → Req ID → Logging → Session → CORS     │
    │                                                     │
    │  Routes:                                            │
    │  /jokes, /jokes/random, /jokes/new, /jokes/{id}     │
    │  /login, /logout, /health                           │
    │                                                     │
    │  Exception Handlers:                                │
    │  BadRequest→400 │ FormValidation→400 │ Unauth→401   │
    │  Forbidden→403  │ NotFound→404       │ DB→500       │
    └─────────────────────────────────────────────────────┘

Services raise; only the handlers below decide status codes.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from jokebox import __version__
from jokebox.config import settings
from jokebox.database import dispose_engine
from jokebox.exceptions import (
    BadRequestError,
    DatabaseError,
    ForbiddenError,
    FormValidationError,
    JokeboxError,
    NotFoundError,
    RateLimitExceededError,
    UnauthenticatedError,
)
from jokebox.middleware.logging import RequestLoggingMiddleware
from jokebox.middleware.rate_limit import RateLimitMiddleware
from jokebox.middleware.request_id import RequestIDMiddleware, request_id_var
from jokebox.routes import auth, health, jokes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:  logging, configuration check, ready banner.
    Shutdown: dispose the database engine (close pooled connections).
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Jokebox Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving; the development secret still works locally
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Jokebox Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, **extra) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the application's exception hierarchy to HTTP responses.

    Handler hierarchy:
        BadRequestError         → 400 Bad Request
        FormValidationError     → 400 Bad Request (fieldErrors, fields, formError)
        UnauthenticatedError    → 401 Unauthorized
        ForbiddenError          → 403 Forbidden
        NotFoundError           → 404 Not Found
        RateLimitExceededError  → 429 Too Many Requests
        DatabaseError           → 500 Internal Server Error (generic message)
        JokeboxError (base)     → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error (generic message)

    Internal details (tracebacks, SQL) are logged, never returned.
    """

    @app.exception_handler(BadRequestError)
    async def handle_bad_request(request: Request, exc: BadRequestError):
        logger.warning("[%s] Bad request: %s", request_id_var.get(""), exc.message)
        return JSONResponse(status_code=400, content=_error_body("bad_request", exc.message))

    @app.exception_handler(FormValidationError)
    async def handle_form_validation(request: Request, exc: FormValidationError):
        """Recoverable: the client re-displays the form with these errors."""
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "fieldErrors": exc.field_errors,
                "fields": exc.fields,
                "formError": exc.form_error,
                "request_id": request_id_var.get(""),
            },
        )

    @app.exception_handler(UnauthenticatedError)
    async def handle_unauthenticated(request: Request, exc: UnauthenticatedError):
        return JSONResponse(status_code=401, content=_error_body("unauthorized", exc.message))

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        logger.warning(
            "[%s] Forbidden: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return JSONResponse(status_code=403, content=_error_body("forbidden", exc.message))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_error_body("not_found", exc.message))

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=_error_body("rate_limit_exceeded", exc.message, details=exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "server_error", "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(JokeboxError)
    async def handle_app_error(request: Request, exc: JokeboxError):
        logger.error(
            "[%s] Unhandled application error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "Something unexpected went wrong. Sorry about that."),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all: log the full traceback, return a generic message.

        Runs in ServerErrorMiddleware, outside RequestIDMiddleware, so the id
        comes from request.state and the header is set here.
        """
        rid = request_id_var.get("") or getattr(request.state, "request_id", "")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "Something unexpected went wrong. Sorry about that.",
                "request_id": rid,
            },
            headers={"X-Request-ID": rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns a fresh instance every call, so tests get isolated middleware
    state (e.g. the rate limiter window) and dependency overrides.
    """
    app = FastAPI(
        title="Jokebox API",
        description="Share short jokes. Anyone can read them; only their author can delete them.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition (last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After", "Location"],
    )

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie_name,
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.session_https_only,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(jokes.router)
    app.include_router(auth.router)
    app.include_router(health.router)

    return app


app = create_app()
