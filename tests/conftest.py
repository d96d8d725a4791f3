"""
Shared test fixtures for the Book Club API test suite.

Every test gets its own in-memory aiosqlite database injected into
``create_app``; nothing is shared between tests.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-key-for-the-suite"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["ENVIRONMENT"] = "test"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from bookclub.core.security import create_access_token, get_password_hash
from bookclub.db.session import Database
from bookclub.main import create_app
from bookclub.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = Database(TEST_DATABASE_URL, engine=engine)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def app(database: Database):
    return create_app(database)


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with database.session() as session:
        yield session


# ── Auth helpers ────────────────────────────────────────────────────
def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register(
    client: AsyncClient,
    username: str = "alice1",
    email: str = "a@x.com",
    password: str = "secret1",
    **extra,
) -> dict:
    """Register through the API and return the response ``data`` block."""
    resp = await client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password, **extra},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
async def member(async_client: AsyncClient) -> dict:
    """A registered member: ``{"user": {...}, "token": ..., "refreshToken": ...}``."""
    return await register(async_client)


@pytest.fixture
def member_headers(member: dict) -> dict[str, str]:
    return bearer(member["token"])


@pytest.fixture
async def admin(db_session: AsyncSession) -> User:
    user = User(
        username="root_admin",
        email="admin@bookclub.test",
        hashed_password=get_password_hash("adminpass"),
        role="admin",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def admin_headers(admin: User) -> dict[str, str]:
    return bearer(create_access_token(admin))
