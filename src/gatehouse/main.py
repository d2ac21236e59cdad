"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (logging, database engine).
Middleware, CORS, routers and the error handler are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gatehouse import __version__
from gatehouse.api import api_router
from gatehouse.config import settings
from gatehouse.errors import GatehouseError
from gatehouse.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "gatehouse.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        admin_scope=settings.admin_scope,
    )

    yield

    logger.info("gatehouse.shutdown")

    # Let fire-and-forget jobs finish before the engine goes away
    from gatehouse.background import drain
    await drain()

    from gatehouse.db.engine import engine
    await engine.dispose()


async def gatehouse_error_handler(request: Request, exc: GatehouseError) -> JSONResponse:
    """Turn service errors into {"message": ...} with the error's status."""
    logger.info(
        "request.rejected",
        path=request.url.path,
        status=exc.status_code,
        error=type(exc).__name__,
    )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Gatehouse",
        description="Multi-tenant accounts, users and revocable bearer sessions",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from gatehouse.middleware.request_id import RequestIdMiddleware
    from gatehouse.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(GatehouseError, gatehouse_error_handler)

    # Mount API routes
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: gatehouse.main:app)
app = create_app()
