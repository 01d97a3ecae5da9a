"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (engine disposal, optional
table creation for local sqlite runs). Middleware, CORS, and routers are
all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voidchat import __version__
from voidchat.api import api_router, oauth_callback_router
from voidchat.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "voidchat.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        token_expiry=settings.token_expire_seconds or "never",
    )

    from voidchat.db.engine import create_tables, engine

    if settings.auto_create_tables:
        await create_tables()
        logger.info("voidchat.tables_created")

    yield

    logger.info("voidchat.shutdown")
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="VOID",
        description="Accounts, sessions and persistent conversations for the VOID assistant",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from voidchat.middleware.request_id import RequestIdMiddleware
    from voidchat.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)
    app.include_router(oauth_callback_router, tags=["oauth"])

    return app


# Default app instance (used by uvicorn: voidchat.main:app)
app = create_app()
