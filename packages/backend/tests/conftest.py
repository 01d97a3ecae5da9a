"""Test fixtures — a throwaway sqlite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own sqlite file (tmp_path) and a fresh schema.
2. get_db is overridden so every request opens its own session on that
   file, exactly like production does per request. Separate connections
   matter: concurrent signups must race at the unique constraint, not
   share one transaction.
3. httpx's ASGITransport drives the app in-process; no server is started.

bcrypt runs at its minimum cost here so the suite stays fast.
"""

import os

os.environ.setdefault("VOIDCHAT_BCRYPT_ROUNDS", "4")
os.environ.setdefault("VOIDCHAT_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from voidchat.db.engine import get_db
from voidchat.db.models import Base
from voidchat.main import app


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    """Fresh schema in a per-test sqlite file."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'voidchat-test.db'}", echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client with get_db pointed at the test database.

    Learn: Auth is NOT mocked. Tests sign up / log in and send real bearer
    tokens, so the token issuer and auth dependency are exercised on
    every protected call.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def signup(client):
    """Sign an account up and return (token, user) from the response."""

    async def _signup(
        username: str,
        password: str = "pw1",
        question: str = "Q",
        answer: str = "A",
    ) -> tuple[str, dict]:
        r = await client.post(
            "/api/v1/auth/signup",
            json={
                "username": username,
                "password": password,
                "securityQuestion": question,
                "securityAnswer": answer,
            },
        )
        assert r.status_code == 201, r.text
        body = r.json()
        return body["token"], body["user"]

    return _signup