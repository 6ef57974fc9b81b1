"""
Shared test fixtures.

Every test gets a fresh SQLite database file (through the same adapter the
service uses) and, for API tests, an httpx client talking to the ASGI app
with the session and token-verifier dependencies overridden.
"""

import os

# Must be set before shortlinks.core.setting is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("EXPIRED_SWEEP_INTERVAL_SECONDS", "0")

from datetime import timedelta

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from shortlinks.core.clock import utcnow
from shortlinks.core.exceptions import InvalidTokenError
from shortlinks.core.identity import Identity
from shortlinks.core.rate_limit import limiter
from shortlinks.core.security import TokenVerifier, get_token_verifier
from shortlinks.db.adapters import get_database_adapter
from shortlinks.db.models import ShortLink
from shortlinks.db.session import get_session, init_models
from shortlinks.main import app
from shortlinks.services.link_store import LinkStore

ALICE = Identity("alice")
BOB = Identity("bob")

TOKENS = {
    "token-alice": ALICE,
    "token-bob": BOB,
}


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class FakeTokenVerifier(TokenVerifier):
    """Stands in for the Auth Service with a fixed token table."""

    def __init__(self, tokens: dict):
        self.tokens = tokens

    async def verify(self, token: str) -> Identity:
        try:
            return self.tokens[token]
        except KeyError:
            raise InvalidTokenError("Token rejected by Auth Service")


@pytest_asyncio.fixture
async def engine(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'shortlinks-test.db'}"
    engine = get_database_adapter(url).create_engine(url)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_link(session_factory):
    """Insert a link directly, bypassing shortening validation (e.g. already expired)."""

    async def _make_link(code, owner=ALICE, url="https://example.com", expires_in=None, age=timedelta(hours=1)):
        now = utcnow()
        link = ShortLink(
            code=code,
            original_url=url,
            owner_id=owner.user_id,
            created_at=now - age,
            expires_at=now + expires_in if expires_in is not None else None,
        )
        async with session_factory() as session:
            return await LinkStore(session).insert(link)

    return _make_link


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_token_verifier] = lambda: FakeTokenVerifier(TOKENS)
    limiter.enabled = False

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def dropped_tables(engine):
    """Drop the schema under a live engine so every store call fails."""
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.drop_all)
