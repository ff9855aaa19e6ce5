"""
Pizza Gateway — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the ServiceContext, registers middleware, exception
       handlers, and routes, and returns the app. `uvicorn pizza_gateway.main:app`
       or `python -m pizza_gateway` serves it.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware Chain:                                           │
    │  Request ID → Access Log → Security → CORS → Rate Limit      │
    │                                                              │
    │  Routes (behind require_auth unless noted):                  │
    │  /auth/login (open, jwt only)   /health (open)               │
    │  /ingredients  /ingredient/{id}  /updateingredient           │
    │  /insertingredient  /appetizers  /toppings  /pizzasizes      │
    │  /appetizerprices  /insertpizzaorder  /insertappetizerorder  │
    │                                                              │
    │  Exception Handlers:                                         │
    │  Validation→400 │ Auth→401 │ Forbidden→403 │ Database→500    │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Check the active auth strategy has its secret (logged, not fatal)
    3. Install the event-loop handler for unhandled asynchronous errors
    4. Probe the pool with SELECT NOW() (logged, not fatal)

    Shutdown:
    1. Dispose the database engine
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pizza_gateway import __version__
from pizza_gateway.config import Settings, settings as default_settings
from pizza_gateway.context import ServiceContext
from pizza_gateway.exceptions import (
    AuthenticationError,
    DatabaseError,
    ForbiddenError,
    GatewayError,
    PartialOrderError,
    ValidationError,
)
from pizza_gateway.middleware.logging import RequestLoggingMiddleware
from pizza_gateway.middleware.rate_limit import RateLimitMiddleware
from pizza_gateway.middleware.request_id import (
    RequestIDMiddleware,
    RequestIdLogFilter,
    request_id_var,
)
from pizza_gateway.middleware.security_headers import SecurityHeadersMiddleware
from pizza_gateway.routes import register_routes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s
    The request ID comes from RequestIdLogFilter ("-" outside a request).
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdLogFilter())

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    context: ServiceContext = app.state.context
    setup_logging(context.settings.log_level)
    logger.info("Pizza Gateway %s starting (auth=%s)", __version__, context.settings.auth_strategy)

    try:
        context.settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    loop = asyncio.get_running_loop()
    previous_handler = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, ctx: context.record_unhandled_error(ctx))

    await context.startup()
    logger.info("Server running on port %d", context.settings.port)

    yield

    logger.info("Pizza Gateway shutting down...")
    await context.shutdown()
    loop.set_exception_handler(previous_handler)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request_id_var.get("")


def register_exception_handlers(app: FastAPI, context: ServiceContext) -> None:
    """
    Map exceptions to HTTP responses.

        ValidationError / RequestValidationError → 400
        AuthenticationError                      → 401
        ForbiddenError                           → 403
        DatabaseError (incl. PartialOrderError)  → 500, raw message if
                                                   EXPOSE_DB_ERRORS
        GatewayError (base)                      → 500
        Exception (fallback)                     → 500, generic message
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = _request_id(request)
        logger.warning("Validation error on %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context or None,
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = _request_id(request)
        fields = [".".join(str(part) for part in err.get("loc", ())[1:]) for err in exc.errors()]
        fields = [f for f in fields if f]
        message = "Invalid input"
        if fields:
            message = f"Invalid input: {', '.join(fields)}"
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": message,
                "details": {"fields": fields},
                "request_id": rid,
            },
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content={
                "error": "unauthorized",
                "message": exc.message,
                "request_id": _request_id(request),
            },
        )

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden_error(request: Request, exc: ForbiddenError):
        return JSONResponse(
            status_code=403,
            content={
                "error": "forbidden",
                "message": exc.message,
                "request_id": _request_id(request),
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = _request_id(request)
        logger.error("Database error on %s: %s | Context: %s", request.url.path, exc.message, exc.context)
        message = exc.message
        if not context.settings.expose_db_errors:
            message = "A database error occurred. Please try again later."
        content = {"error": "server_error", "message": message, "request_id": rid}
        if isinstance(exc, PartialOrderError):
            content["details"] = {
                "order_id": exc.order_id,
                "items_written": exc.items_written,
            }
        return JSONResponse(status_code=500, content=content)

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError):
        logger.error("Unhandled gateway error: %s | Context: %s", exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": _request_id(request),
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = _request_id(request)
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    context: Optional[ServiceContext] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: defaults to the environment-loaded settings
        context:  prebuilt ServiceContext (tests pass one with a fake database);
                  built from `settings` when omitted
    """
    if context is None:
        context = ServiceContext.create(settings or default_settings)
    settings = context.settings

    app = FastAPI(
        title="Pizza Gateway",
        description=(
            "Authenticated HTTP passthrough to the pizzeria's PostgreSQL routines. "
            "Each route calls exactly one sal.fn_* / sal.sp_* routine."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → SecurityHeaders → CORS → RateLimit
    # A 429 still carries the request ID, the hardening headers, and CORS headers.
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window,
        trust_proxy=settings.trust_proxy,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app, context)
    register_routes(app, context)

    return app


def run() -> None:
    """Serve the app on HOST:PORT."""
    import uvicorn

    uvicorn.run(
        "pizza_gateway.main:app",
        host=default_settings.host,
        port=default_settings.port,
        proxy_headers=default_settings.trust_proxy,
        log_config=None,
    )


app = create_app()
