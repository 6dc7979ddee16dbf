"""
Pytest configuration and shared fixtures.

This file provides common fixtures for all tests.

Tests run against an in-memory SQLite database (aiosqlite). Every test gets a
fresh engine with the schema created from SQLModel metadata, so no database
server is needed.
"""

import os

# Settings are read at import time; these must be set before importing app modules
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("DATABASE_URL", os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://"))
os.environ.setdefault("DISCORD_CLIENT_ID", "test-client-id")
os.environ.setdefault("DISCORD_CLIENT_SECRET", "test-client-secret")

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.config import UserRole, settings
from app.core.context import RequestContext, create_request_context
from app.core.database import get_db
from app.core.jwt import generate_secure_token
from app.main import app as main_app
from app.models.user import Users

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a test database engine for each test function.

    StaticPool keeps a single connection so the in-memory database lives as
    long as the engine.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture(scope="function")
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a new database session for each test."""
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session

        # Cleanup - rollback any changes made during the test
        await session.rollback()


@pytest.fixture
def ctx(db_session: AsyncSession) -> RequestContext:
    """
    Request context around the test session, as the RPC layer would build it.

    Usage:
        async def test_rotation(ctx):
            pair = await auth_service.generate_token_pair(ctx, user, TokenIntent.CLIENT)
    """
    return create_request_context(db_session, request_id="test-request-id", locale="en")


@pytest.fixture(scope="function")
def app(db_session: AsyncSession) -> FastAPI:
    """
    Create FastAPI app with test database session.

    This overrides the database dependency to use the test session.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    main_app.dependency_overrides[get_db] = override_get_db

    yield main_app

    main_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Create async HTTP client for testing API endpoints.

    Usage:
        async def test_endpoint(client):
            response = await client.post("/api/v1/rpc/auth/validateAccessToken", json={...})
            assert response.json()["ok"] is True
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# =============================================================================
# Test Data Fixtures
# =============================================================================

UserFactory = Callable[..., Awaitable[Users]]


@pytest.fixture
def make_user(db_session: AsyncSession) -> UserFactory:
    """
    Factory for committed users.

    Usage:
        async def test_admin(make_user):
            admin = await make_user(role=UserRole.ADMIN)
    """
    counter = 0

    async def _make_user(
        role: UserRole = UserRole.REGULAR,
        discord_id: str | None = None,
        display_name: str | None = None,
        email: str | None = None,
    ) -> Users:
        nonlocal counter
        counter += 1
        user = Users(
            id=generate_secure_token(16),
            discord_id=discord_id or f"10000000000000000{counter}",
            display_name=display_name or f"testuser{counter}",
            email=email or f"test{counter}@example.com",
            email_is_verified=True,
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
async def test_user(make_user: UserFactory) -> Users:
    """A committed REGULAR user."""
    return await make_user()


@pytest.fixture
async def admin_user(make_user: UserFactory) -> Users:
    """A committed ADMIN user."""
    return await make_user(role=UserRole.ADMIN, display_name="adminuser")


@pytest.fixture
def jwt_secret() -> str:
    return settings.JWT_SECRET
