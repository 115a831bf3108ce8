"""Database module with async SQLAlchemy engine and session management."""

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .settings import get_settings

# SQLAlchemy base for models
Base = declarative_base()


@lru_cache()
def get_engine() -> AsyncEngine:
    """Create the application engine on first use."""
    settings = get_settings()
    return create_async_engine(
        settings.db_url,
        echo=settings.debug,
        pool_pre_ping=True,
    )


@lru_cache()
def get_session_factory() -> async_sessionmaker:
    """Async session maker bound to the application engine."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session."""
    async with get_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()


async def ping(engine: AsyncEngine = None) -> None:
    """Test the database connection."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))


async def create_all(engine: AsyncEngine = None):
    """Create all tables in the database."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all(engine: AsyncEngine = None):
    """Drop all tables in the database."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
