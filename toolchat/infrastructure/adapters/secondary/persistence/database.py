import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from toolchat.configuration.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# pool_pre_ping: test connections before using them (detects stale connections)
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def initialize_database() -> None:
    """Create all tables defined in the SQLAlchemy models."""
    from toolchat.infrastructure.adapters.secondary.persistence.models import Base

    logger.info("Initializing database schema...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema initialized")


async def dispose_database() -> None:
    await engine.dispose()
