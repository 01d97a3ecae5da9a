"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

PostgreSQL (asyncpg) is the production store; sqlite (aiosqlite) works for
local runs. SQLite pools don't take size arguments, so pool sizing is only
applied to server databases.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from voidchat.config import settings


def _pool_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    # Connection pool: min 5, max 20 connections.
    return {"pool_size": 5, "max_overflow": 15}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_pool_options(settings.database_url),
)

# Session factory: each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_tables() -> None:
    """Create all tables directly from the models (local/dev only)."""
    from voidchat.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
