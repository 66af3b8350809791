"""
TeamClock - Test Fixtures
=========================

Shared pytest fixtures for all tests.
"""

from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from teamclock.api.deps import create_identity_token
from teamclock.api.main import app
from teamclock.core.database import Base, configure_sqlite, get_db
from teamclock.core.models import Company, User
from teamclock.core.repositories import InMemoryStore, InMemoryUnitOfWork, SqlUnitOfWork
from tests.factories import FakeClock, headers_for, make_user


# ==========================================================================
# Test Database Setup
# ==========================================================================

# In-memory SQLite, configured like the app engine (foreign keys, savepoints)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = configure_sqlite(
    create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
)

TestingSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


# ==========================================================================
# Database Fixtures
# ==========================================================================

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a clean database session for each test.

    Creates all tables before test, drops after.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestingSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide test HTTP client with database override.
    """
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ==========================================================================
# Service Fixtures
# ==========================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow(store: InMemoryStore) -> InMemoryUnitOfWork:
    """In-memory unit of work for service tests."""
    return InMemoryUnitOfWork(store)


@pytest.fixture
def sql_uow(db_session: AsyncSession) -> SqlUnitOfWork:
    return SqlUnitOfWork(db_session)


# ==========================================================================
# User Fixtures
# ==========================================================================

@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A user with a profile but no company."""
    user = make_user("Test User")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_company(db_session: AsyncSession) -> Company:
    company = Company(id=uuid4(), name="MIGHTY", invite_code="MGHT01")
    db_session.add(company)
    await db_session.commit()
    await db_session.refresh(company)
    return company


@pytest_asyncio.fixture
async def test_member(db_session: AsyncSession, test_company: Company) -> User:
    """A user who belongs to test_company."""
    user = make_user("Alice", company_id=test_company.id)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def teammate(db_session: AsyncSession, test_company: Company) -> User:
    user = make_user("Bob", company_id=test_company.id)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


# ==========================================================================
# Auth Fixtures
# ==========================================================================

@pytest.fixture
def auth_headers(test_user: User) -> dict[str, str]:
    """Get authorization headers for test user."""
    return headers_for(test_user)


@pytest.fixture
def member_headers(test_member: User) -> dict[str, str]:
    """Get authorization headers for the company member."""
    return headers_for(test_member)


@pytest.fixture
def teammate_headers(teammate: User) -> dict[str, str]:
    return headers_for(teammate)


@pytest.fixture
def new_identity_headers() -> dict[str, str]:
    """A valid token for an identity with no profile yet."""
    token = create_identity_token(f"idp|{uuid4().hex[:12]}")
    return {"Authorization": f"Bearer {token}"}
