"""Database connection and session management."""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from workshop.config import settings
from workshop.models import Base

logger = logging.getLogger(__name__)

engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker] = None


async def init_db(database_url: Optional[str] = None):
    """Initialize database engine and create tables."""
    global engine, async_session_maker

    engine = create_async_engine(
        database_url or settings.DATABASE_URL,
        echo=settings.DEBUG,
        future=True,
        pool_pre_ping=True,
    )

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Create tables if they don't exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized")


async def close_db():
    """Close database engine."""
    global engine
    if engine:
        await engine.dispose()
        logger.info("Database engine disposed")


def get_session_maker() -> async_sessionmaker:
    """Session factory for work that outlives a request (notifications, jobs)."""
    if async_session_maker is None:
        raise RuntimeError("Database not initialized - call init_db() first")
    return async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with get_session_maker()() as session:
        yield session
