"""Async engine, session factory and transaction helper.

Every request gets one AsyncSession (``get_db_session``). Reads performed by
dependencies such as ``get_current_user`` auto-begin the session's
transaction, so mutating services never call ``db.begin()``; they wrap their
work in ``atomic(db)`` which commits on success and rolls back on error.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Shared declarative base for the ORM-mapped tables (users only)."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed statements as one unit: commit, or roll back and re-raise."""
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
