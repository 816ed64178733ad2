"""
Async database connection management for TranscriptVault.

Provides SQLAlchemy async engine and session factory creation for the
PostgreSQL metadata index. Callers own the engine they build; nothing is
cached at module level.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tv_common.config import Settings


def build_engine(settings: Settings, *, echo: bool = False) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Args:
        settings: Source of ``db_uri`` and ``db_pool_size``.
        echo: Log emitted SQL.

    Returns:
        A configured ``AsyncEngine`` instance.
    """
    return create_async_engine(
        settings.db_uri,
        pool_size=settings.db_pool_size,
        pool_pre_ping=True,
        echo=echo,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to *engine*.

    Args:
        engine: The async engine to bind sessions to.

    Returns:
        An ``async_sessionmaker`` that produces ``AsyncSession`` instances.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
