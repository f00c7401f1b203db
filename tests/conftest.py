# File: tests/conftest.py
"""Pytest configuration and fixtures."""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import campusbill.models  # noqa: F401  (registers every table on Base.metadata)
from campusbill.core.db import Base, get_db
from campusbill.core.session import UserSession
from campusbill.core.store import UserStore
from campusbill.main import create_app

# One shared in-memory connection per test
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def engine():
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(engine):
    """Session factory bound to the test database."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker):
    """Create fresh DB session for each test."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def user_session(db_session: AsyncSession) -> UserSession:
    """A logged-out UserSession over a plain dict."""
    return UserSession(UserStore(db_session))


@pytest_asyncio.fixture
async def client(db_session: AsyncSession):
    """Async test client sharing the test DB session. Cookies persist across calls."""
    app = create_app()

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        ac.db_session = db_session
        yield ac
