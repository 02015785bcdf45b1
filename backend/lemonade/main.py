"""
Lemonade Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the core services against a session factory,
       stores them on app.state, registers middleware, exception handlers
       and routers. uvicorn serves the module-level `app`
       (uvicorn lemonade.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:  CORS → RequestContext (X-Request-ID + log) │
    │                                                          │
    │  Routes:  /beverage/types  /beverage/sizes               │
    │           /beverage/price-links  /orders  /health        │
    │                                                          │
    │  Exception Handlers:                                     │
    │   ValidationError→400  NotFound→404  Conflict→409        │
    │   Internal/Database→500                                  │
    │                                                          │
    │  app.state.services ──▶ types, sizes, price_matrix,      │
    │                         orders (built by build_services) │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, optionally create the schema
              (DB_CREATE_SCHEMA), log readiness
    Shutdown: dispose the process-wide engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lemonade import __version__
from lemonade.config import settings
from lemonade.database import async_session_factory, create_schema, dispose_engine, engine
from lemonade.exceptions import (
    ConflictError,
    DatabaseError,
    DuplicateLinkError,
    DuplicateNameError,
    InternalError,
    LemonadeError,
    NotFoundError,
    ValidationError,
)
from lemonade.middleware import RequestContextMiddleware, request_id_var
from lemonade.routes import beverages, health, orders
from lemonade.services import build_services

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] lemonade.services.order_service: Order ... placed

    Called once from the lifespan, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Lemonade Backend %s starting up...", __version__)

    if settings.db_create_schema:
        await create_schema(engine)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Lemonade Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map service exceptions to HTTP responses.

        ValidationError     → 400 validation_error
        NotFoundError       → 404 not_found
        DuplicateNameError  → 409 duplicate_name
        DuplicateLinkError  → 409 duplicate_link
        ConflictError       → 409 conflict
        InternalError       → 500 internal_error   (details logged only)
        DatabaseError       → 500 server_error     (details logged only)
        LemonadeError       → 500 server_error
        Exception           → 500 internal_server_error

    Server-side failures never expose their context in the response.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message, exc.context),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        if isinstance(exc, DuplicateNameError):
            code = "duplicate_name"
        elif isinstance(exc, DuplicateLinkError):
            code = "duplicate_link"
        else:
            code = "conflict"
        logger.warning("[%s] Conflict (%s): %s", request_id_var.get(""), code, exc.message)
        return JSONResponse(status_code=409, content=_error_body(code, exc.message, exc.context))

    @app.exception_handler(InternalError)
    async def handle_internal_error(request: Request, exc: InternalError):
        rid = request_id_var.get("")
        logger.error("[%s] Internal error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("internal_error", "An internal error occurred. Please contact support."),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(LemonadeError)
    async def handle_application_error(request: Request, exc: LemonadeError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=500, content=_error_body("server_error", exc.message))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        session_factory: Database sessions for the services and the health
                         check. Defaults to the process-wide factory built from
                         settings.database_url; tests pass their own.

    Returns:
        Fully configured FastAPI instance.
    """
    session_factory = session_factory or async_session_factory

    app = FastAPI(
        title="Lemonade API",
        description=(
            "Beverage ordering backend: beverage types and sizes, a price matrix, "
            "and immutable customer orders priced at the moment they are placed."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.session_factory = session_factory
    app.state.services = build_services(session_factory)

    # Middleware executes in reverse order of addition: RequestContext runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    app.include_router(beverages.router)
    app.include_router(orders.router)
    app.include_router(health.router)

    return app


app = create_app()
