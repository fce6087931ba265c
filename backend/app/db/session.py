# backend/app/db/session.py
"""
Async engine and session factory.

- asyncpg for PostgreSQL, aiosqlite for SQLite (local development, tests)
- SQLite gets NullPool: one connection per session, so two concurrent
  requests really do hold two connections and race on the store
- PostgreSQL gets a pre-pinged, recycled queue pool
"""
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from backend.app.core.config import settings


def create_engine_for_url(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Build an AsyncEngine for the given URL.

    Args:
        database_url: Async SQLAlchemy URL (sqlite+aiosqlite or postgresql+asyncpg)
        echo: Log emitted SQL

    Returns:
        Configured AsyncEngine instance
    """
    if "sqlite" in database_url.lower():
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        database_url,
        echo=echo,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: repositories commit per call and callers keep
    # reading the returned rows afterwards
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Process-wide engine and session factory
# ─────────────────────────────────────────────────────────────────────────────
engine: AsyncEngine = create_engine_for_url(settings.DATABASE_URL, settings.DATABASE_ECHO)

AsyncSessionLocal: async_sessionmaker[AsyncSession] = create_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Does NOT auto-commit; repositories commit after each write.
    """
    async with AsyncSessionLocal() as session:
        yield session
