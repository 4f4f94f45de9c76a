"""
Pytest configuration and shared fixtures for backend tests.
"""

import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from datetime import UTC, datetime, timedelta
from typing import AsyncGenerator
from uuid import uuid4

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Import after path is set
from infrastructure.database.models import Base, Creation, User
from infrastructure.database.connection import get_db
from core.security import TokenService
from infrastructure.config import get_settings

settings = get_settings()
token_service = TokenService(
    secret_key=settings.jwt_secret_key,
    algorithm=settings.jwt_algorithm,
)


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


async def _create_user(
    db_session: AsyncSession,
    email: str,
    tier: str = "free",
    private_metadata: dict | None = None,
    subscription_expires: datetime | None = None,
) -> User:
    user = User(
        id=str(uuid4()),
        email=email,
        name=email.split("@")[0].title(),
        status="active",
        subscription_tier=tier,
        subscription_status="active",
        subscription_expires=subscription_expires,
        private_metadata=private_metadata,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A free user that has never been seen by the entitlement resolver."""
    return await _create_user(db_session, "test@example.com")


@pytest.fixture
async def premium_user(db_session: AsyncSession) -> User:
    """A user with an active premium subscription."""
    return await _create_user(
        db_session,
        "premium@example.com",
        tier="premium",
        subscription_expires=datetime.now(UTC) + timedelta(days=30),
    )


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory for users with a chosen tier and stored usage counter."""

    async def _make(email: str, tier: str = "free", free_usage: int | None = None) -> User:
        metadata = {"free_usage": free_usage} if free_usage is not None else None
        return await _create_user(db_session, email, tier=tier, private_metadata=metadata)

    return _make


@pytest.fixture
def make_creation(db_session: AsyncSession):
    """Factory inserting Creation rows directly."""

    async def _make(
        user_id: str,
        publish: bool = False,
        likes: list[str] | None = None,
        type: str = "article",
        created_at: datetime | None = None,
        prompt: str = "test prompt",
        content: str = "test content",
    ) -> Creation:
        creation = Creation(
            user_id=user_id,
            prompt=prompt,
            content=content,
            type=type,
            publish=publish,
            likes=list(likes or []),
        )
        if created_at is not None:
            creation.created_at = created_at
        db_session.add(creation)
        await db_session.commit()
        await db_session.refresh(creation)
        return creation

    return _make


def headers_for(user: User) -> dict:
    """Bearer auth headers for ``user``."""
    access_token = token_service.create_access_token(user_id=user.id)
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user."""
    return headers_for(test_user)


@pytest.fixture
def premium_headers(premium_user: User) -> dict:
    return headers_for(premium_user)


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    # Reset rate limiter state between tests to prevent cross-test 429s
    app.state.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    """Return ``headers_for`` so tests can authenticate ad-hoc users."""
    return headers_for
