"""Test fixtures — a fresh SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite file (aiosqlite) with the schema created
   from Base.metadata — no Postgres needed, no cross-test pollution.
2. The app's get_db and get_session_factory are overridden so request
   sessions *and* background jobs (token recording, user deletion) hit
   that same file.
3. httpx's ASGITransport runs the whole ASGI call, background tasks
   included, before returning — so a token is recorded by the time the
   test sees the login response.

Environment is set before gatehouse is imported: bcrypt cost 4 keeps the
suite fast, and a fixed JWT secret lets tests mint their own tokens.
"""

import os
import uuid

os.environ["GATEHOUSE_DATABASE_URL"] = "sqlite+aiosqlite:///./.gatehouse-test.db"
os.environ["GATEHOUSE_BCRYPT_ROUNDS"] = "4"
os.environ["GATEHOUSE_JWT_SECRET"] = "test-secret-0123456789abcdef0123456789abcdef"
os.environ["GATEHOUSE_ENVIRONMENT"] = "development"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from gatehouse.auth.jwt import TokenCodec
from gatehouse.auth.password import PasswordHasher
from gatehouse.auth.resolver import IdentityResolver
from gatehouse.auth.sessions import SessionManager
from gatehouse.auth.store import TokenStore
from gatehouse.background import spawn
from gatehouse.config import settings
from gatehouse.db.engine import get_db, get_session_factory
from gatehouse.db.models import Account, Base
from gatehouse.main import app
from gatehouse.services.account_service import AccountService
from gatehouse.services.user_service import UserService

TEST_SECRET = settings.jwt_secret


# ═══════════════════════════════════════════════════════════
# Database
# ═══════════════════════════════════════════════════════════


@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'gatehouse.db'}", echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ═══════════════════════════════════════════════════════════
# Components (service-level tests)
# ═══════════════════════════════════════════════════════════


@pytest.fixture()
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture()
def codec():
    return TokenCodec(secret=TEST_SECRET)


@pytest.fixture()
def store(db_session, session_factory):
    return TokenStore(db_session, session_factory, schedule=spawn)


@pytest.fixture()
def resolver(db_session, codec, store):
    return IdentityResolver(db_session, codec, store)


@pytest.fixture()
def sessions(codec, store, resolver):
    return SessionManager(codec, store, resolver)


@pytest.fixture()
def users(db_session, hasher, session_factory):
    return UserService(db_session, hasher, session_factory=session_factory)


@pytest.fixture()
def accounts(db_session, users, sessions):
    return AccountService(db_session, users=users, sessions=sessions)


@pytest_asyncio.fixture()
async def member(db_session, users):
    """A standard user in a fresh account, committed."""
    account = Account(name="Acme")
    db_session.add(account)
    await db_session.flush()
    user = await users.register(account.id, "wile", "coyote_password")
    await db_session.commit()
    return user


# ═══════════════════════════════════════════════════════════
# HTTP
# ═══════════════════════════════════════════════════════════


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client against the real app, backed by the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def unique(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@pytest_asyncio.fixture()
async def account(client):
    """A freshly onboarded account: {"account", "key", "user"} with owner token."""
    r = await client.post(
        "/api/v1/accounts",
        json={"name": "Acme", "username": "owner", "password": "owner_password"},
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest_asyncio.fixture()
async def other_account(client):
    r = await client.post(
        "/api/v1/accounts",
        json={"name": "Globex", "username": "owner", "password": "globex_password"},
    )
    assert r.status_code == 201, r.text
    return r.json()


def key_headers(account: dict) -> dict:
    return {"Account-Key": account["key"]["id"]}


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
