"""
Shared test fixtures for the back office test suite.

Async throughout (aiosqlite + AsyncSession); each test gets a fresh
in-memory database wired in through a ``get_db`` dependency override.
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
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-back-office-suite"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from backoffice.api.v1.deps import get_db
from backoffice.core.security import create_access_token, get_password_hash
from backoffice.db.base import Base
from backoffice.main import app
from backoffice.models.user import User
from backoffice.services import preferences

DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"
PHONE_UA = "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 Chrome/120.0 Mobile Safari/537.36"


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
def reset_preference_hub():
    """Shared preference stores are process-wide; start every test clean."""
    preferences.hub.clear()
    yield
    preferences.hub.clear()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app and the test database."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"User-Agent": DESKTOP_UA},
    ) as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


# ── Users & tokens ──────────────────────────────────────────────────
async def create_user(
    db: AsyncSession,
    email: str,
    role: str = "cashier",
    password: str = "secret123",
    is_active: bool = True,
) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=email.split("@")[0].title(),
        role=role,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def cashier(db_session: AsyncSession) -> User:
    return await create_user(db_session, "cashier@printshop.test", role="cashier")


@pytest.fixture
async def owner(db_session: AsyncSession) -> User:
    return await create_user(db_session, "owner@printshop.test", role="owner")


@pytest.fixture
def user_factory(db_session: AsyncSession):
    async def _make(email: str, role: str = "cashier", **kwargs) -> User:
        return await create_user(db_session, email, role=role, **kwargs)

    return _make


@pytest.fixture
def auth_headers():
    return bearer
