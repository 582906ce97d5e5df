"""
Pytest configuration and fixtures.

The application reads its settings at import time, so the required
environment is set before anything from ``bugtracker`` is imported.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-jwt-secret-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")

import re
from typing import AsyncGenerator, Callable, Dict

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from bugtracker.main import app
from bugtracker.models.base import Base
from bugtracker.models.user import User, UserRole
from bugtracker.db.session import get_db
from bugtracker.core.auth import create_access_token
from bugtracker.middleware import rate_limiter as rate_limiter_module
from bugtracker.services import email as email_module

from tests.factories import UserFactory


TEST_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

OTP_PATTERN = re.compile(r"Your OTP is (\d+)")


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Fresh in-memory database per test; StaticPool keeps one connection."""
    engine = create_async_engine(
        TEST_ASYNC_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session.

    Yields:
        AsyncSession: Database session for the test
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client bound to the app, sharing the test session.

    Yields:
        AsyncClient: HTTP client for making test requests
    """

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await UserFactory.create(
        db_session,
        name="Admin User",
        email="admin@example.com",
        role=UserRole.ADMIN,
    )


@pytest_asyncio.fixture
async def member_user(db_session: AsyncSession) -> User:
    return await UserFactory.create(
        db_session,
        name="Member User",
        email="member@example.com",
        role=UserRole.MEMBER,
    )


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    """Build an Authorization header for a user."""

    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token({"user_id": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def last_otp() -> Callable[[str], str]:
    """Read the most recent code emailed to an address from the mock provider."""

    def _last_otp(email: str) -> str:
        for message in reversed(email_module.MockEmailProvider.sent_emails):
            if message.to_email == email:
                match = OTP_PATTERN.search(message.text_content or "")
                assert match, "OTP email has no code"
                return match.group(1)
        raise AssertionError(f"No OTP email sent to {email}")

    return _last_otp


@pytest.fixture(autouse=True)
def disable_rate_limiting(monkeypatch):
    """
    Replace the Redis-backed limiter with one that always allows.

    Integration tests call the auth endpoints many times in a row; the
    limiter itself is covered by unit tests with a mocked Redis.
    """
    from unittest.mock import AsyncMock, MagicMock

    allowed = rate_limiter_module.RateLimitResult(
        allowed=True,
        remaining=100,
        reset_after=60,
        limit=100,
    )

    mock_limiter = MagicMock()
    mock_limiter.check_rate_limit = AsyncMock(return_value=allowed)

    async def mock_get_rate_limiter():
        return mock_limiter

    monkeypatch.setattr(rate_limiter_module, "get_rate_limiter", mock_get_rate_limiter)
    rate_limiter_module._rate_limiter = None

    yield mock_limiter

    rate_limiter_module._rate_limiter = None


@pytest.fixture(autouse=True)
def use_mock_email_provider(monkeypatch):
    """
    Route every email through MockEmailProvider.

    Clearing RESEND_API_KEY and the cached service makes the next
    ``get_email_service()`` build a mock-backed service.
    """
    from bugtracker.core import config

    email_module.MockEmailProvider.clear_sent_emails()
    monkeypatch.setattr(config.settings, "RESEND_API_KEY", None)
    monkeypatch.setattr(email_module, "_email_service", None)

    yield

    email_module.MockEmailProvider.clear_sent_emails()
