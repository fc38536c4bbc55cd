"""
Database configuration and session management.

Provides:
- Async engine creation with dialect-specific pooling
- AsyncSessionLocal factory
- get_async_session() dependency for FastAPI request-scoped sessions
"""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from calsync.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

if settings.is_production:
    settings.validate_production_config()


def to_async_database_url(sync_url: str) -> str:
    """Convert sync database URL to async URL."""
    if "sqlite" in sync_url.lower() and "aiosqlite" not in sync_url:
        return sync_url.replace("sqlite:///", "sqlite+aiosqlite:///")
    elif sync_url.startswith("postgresql://"):
        return sync_url.replace("postgresql://", "postgresql+asyncpg://")
    return sync_url


async_database_url = to_async_database_url(settings.database_url)

if "sqlite" in settings.database_url.lower():
    async_engine = create_async_engine(
        async_database_url,
        echo=settings.log_level == "DEBUG",
    )
else:
    async_engine = create_async_engine(
        async_database_url,
        pool_size=5,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=settings.log_level == "DEBUG",
    )

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database sessions.

    Commits on success and rolls back if the request raises.

    Yields:
        AsyncSession: SQLAlchemy async database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

