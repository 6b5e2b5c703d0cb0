"""Database connection and session management.

Provides the async engine and session factory used by request handlers
and by the background enrichment workers.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from common.config import settings

logger = logging.getLogger(__name__)

# Global engine (initialized lazily)
_engine = None
_session_factory = None


def _get_database_url() -> str:
    """Get database URL from DATABASE_URL or AWS Secrets Manager."""
    url = settings.resolved_database_url
    if not url:
        raise ValueError("Database not configured. Set DATABASE_URL or DATABASE_SECRET_ARN")
    return url


def get_engine():
    """Get or create the async database engine."""
    global _engine

    if _engine is None:
        url = _get_database_url()
        # Workers and requests share one pool; leave headroom for both
        _engine = create_async_engine(
            url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.enrichment_workers,
            pool_pre_ping=True,
            echo=settings.debug,
        )
        logger.info("Database engine created", extra={"pool_size": settings.database_pool_size})

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    global _session_factory

    if _session_factory is None:
        engine = get_engine()
        _session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Yields an async session, commits on success and rolls back on error.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    """Close the database engine.

    Call during application shutdown.
    """
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
