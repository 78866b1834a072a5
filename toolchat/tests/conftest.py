"""Pytest configuration and shared fixtures for testing."""

from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from toolchat.configuration.config import Settings
from toolchat.infrastructure.adapters.secondary.persistence.models import Base
from toolchat.infrastructure.adapters.secondary.persistence.sql_session_repository import (
    SqlSessionRepository,
    make_repository_scope,
)

# Constants
TEST_USER_ID = "550e8400-e29b-41d4-a716-446655440000"
OTHER_USER_ID = "550e8400-e29b-41d4-a716-446655440001"
TEST_CHAT_ID = "chat-550e8400"

# --- Database Fixtures ---


@pytest.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def session_repository(test_db: AsyncSession) -> SqlSessionRepository:
    return SqlSessionRepository(test_db)


@pytest.fixture
def repository_scope(session_factory):
    """Short-lived repositories on the shared in-memory database."""
    return make_repository_scope(session_factory)


# --- Settings Fixtures ---


@pytest.fixture
def test_settings() -> Settings:
    """Settings with smoothing delays off so streams finish immediately."""
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        AGENT_MAX_STEPS=3,
        AGENT_STEP_TIMEOUT_SECONDS=5,
        MCP_CONNECT_TIMEOUT_SECONDS=1,
        MCP_TOOL_CALL_TIMEOUT_SECONDS=1,
        TURN_MAX_DURATION_SECONDS=10,
        STREAM_SMOOTH_DELAY_MS=0,
        STREAM_SMOOTH_MAX_DELAY_MS=0,
    )
