"""
BookCourier Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers around
       an AppContext (document store + identity provider).
Who:   uvicorn (`uvicorn bookcourier.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware: RateLimit → RequestID → Logging → GZip → CORS│
    │                                                          │
    │  Routes: users · books · reviews · orders · wishlist ·   │
    │          invoices · health                               │
    │                                                          │
    │  Exception Handlers:                                     │
    │  401 Unauthorized │ 403 Forbidden │ 404 │ 400 │ 429 │ 503 │
    │  PyMongoError → 500 │ Exception → 500                    │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, config validation, AppContext.from_settings()
              (skipped when a context was injected)
    Shutdown: AppContext.close() for contexts the lifespan created
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
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookcourier import __version__
from bookcourier.config import settings
from bookcourier.context import AppContext
from bookcourier.exceptions import (
    BookCourierError,
    CircuitBreakerOpenError,
    IdentityServiceError,
    UnauthorizedError,
)
from bookcourier.middleware.logging import RequestLoggingMiddleware
from bookcourier.middleware.rate_limit import RateLimitMiddleware
from bookcourier.middleware.request_id import RequestIDMiddleware, request_id_var
from bookcourier.routes import books, health, invoices, orders, reviews, users, wishlist

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout.
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-operation chatter from the driver, the Google auth stack and uvicorn
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("google.auth").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("cachecontrol").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Acquire the application context on startup and release it on shutdown.

    An injected context (app.state.context set by create_app) belongs to
    whoever injected it and is left open.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("BookCourier Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.warning("Configuration warning: %s", str(e))

    owned_context: Optional[AppContext] = None
    if getattr(app.state, "context", None) is None:
        owned_context = await AppContext.from_settings(settings)
        app.state.context = owned_context

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("BookCourier Backend shutting down...")
    if owned_context is not None:
        await owned_context.close()
        app.state.context = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the `{"message": ...}` error envelope.

    Handler hierarchy:
        BookCourierError subclasses → their status_code (401/403/404/400/429/503)
        RequestValidationError      → 400 (malformed body or query)
        HTTPException               → its status (unknown route, bad method)
        PyMongoError                → 500, generic message
        Exception                   → 500, generic message

    Internal details (stack traces, driver messages) are logged, never returned.
    """

    @app.exception_handler(BookCourierError)
    async def handle_app_error(request: Request, exc: BookCourierError):
        rid = request_id_var.get("")
        headers = {}
        if isinstance(exc, UnauthorizedError):
            headers["WWW-Authenticate"] = "Bearer"
            logger.info("[%s] Unauthorized %s %s: %s", rid, request.method, request.url.path, exc.context)
        elif isinstance(exc, CircuitBreakerOpenError):
            headers["Retry-After"] = str(exc.recovery_time)
        elif isinstance(exc, IdentityServiceError) and exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)

        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        elif exc.status_code != 401:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.message},
            headers=headers or None,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors = exc.errors()
        logger.info("[%s] Request validation failed: %s", rid, errors)
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        if location:
            message = f"{location}: {message}"
        return JSONResponse(status_code=400, content={"message": message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(PyMongoError)
    async def handle_database_error(request: Request, exc: PyMongoError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "A database error occurred. Please try again later."},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error"},
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        context: Pre-built resources to serve with. When None, the lifespan
                 builds one from settings at startup and closes it at shutdown.
    """
    app = FastAPI(
        title="BookCourier API",
        description=(
            "Book-ordering marketplace backend: listings, orders, wishlists, "
            "reviews and invoices for readers, librarians and administrators."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context

    # Middleware executes in REVERSE order of addition
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(books.router)
    app.include_router(reviews.router)
    app.include_router(orders.router)
    app.include_router(wishlist.router)
    app.include_router(invoices.router)

    return app


app = create_app()
