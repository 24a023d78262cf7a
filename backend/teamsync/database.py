"""
Database configuration and session management for the SQL document store.
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from teamsync.config import settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def create_engine(url: str = None, echo: bool = None) -> AsyncEngine:
    """Create an async engine for the configured database URL."""
    return create_async_engine(
        url or settings.database_url,
        echo=settings.debug if echo is None else echo,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create tables if they don't exist."""
    # Import models so Base.metadata registers them
    from teamsync.store import sql  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
