"""
courial_gateway.api.app

FastAPI app factory for the Courial gateway.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Own shared infrastructure for the process lifetime (DB engine, upstream HTTP client).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from courial_gateway import __version__
from courial_gateway.api.cors import AllowAllCorsMiddleware
from courial_gateway.api.errors import UnhandledErrorMiddleware, install_error_handlers
from courial_gateway.api.routers.health import router as health_router
from courial_gateway.api.routers.otp import router as otp_router
from courial_gateway.api.routers.session import router as session_router
from courial_gateway.api.routers.users import router as users_router
from courial_gateway.courial.client import create_http_client
from courial_gateway.db.init_db import init_db
from courial_gateway.db.session import create_engine, create_sessionmaker
from courial_gateway.observability.logging import configure_logging, get_logger
from courial_gateway.observability.middleware import RequestContextMiddleware
from courial_gateway.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings, http: httpx.AsyncClient | None = None) -> FastAPI:
    """
    `http` overrides the upstream client (tests pass one built on `httpx.MockTransport`);
    an injected client is not closed on shutdown.
    """

    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.http = http or create_http_client(
            base_url=settings.courial_base_url,
            timeout_seconds=settings.upstream_timeout_seconds,
        )
        if settings.env in ("dev", "test"):
            # Prod runs Alembic migrations instead.
            await init_db(engine)
        try:
            yield
        finally:
            if http is None:
                await app.state.http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Courial Gateway",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    install_error_handlers(app)
    # Added innermost first: errors -> CORS -> request context.
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(AllowAllCorsMiddleware, allow_headers=settings.cors_allow_headers)
    app.add_middleware(RequestContextMiddleware)

    app.include_router(health_router, tags=["health"])
    app.include_router(otp_router)
    app.include_router(users_router)
    app.include_router(session_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; upstream semantics live in `courial/` and routers.
