"""
Database Module

Async SQLAlchemy engine, session factory and declarative base.

The API uses one AsyncSession per request (see get_db). Services commit
explicitly; anything left uncommitted when the request ends is rolled back.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

logger = logging.getLogger(__name__)


# ============================================================
# Engine
# ============================================================
def _engine_kwargs() -> dict:
    kwargs = {
        "echo": settings.SQLALCHEMY_ECHO,
        "pool_pre_ping": True,
    }
    if settings.DB_POOL_MIN_SIZE:
        kwargs["pool_size"] = settings.DB_POOL_MIN_SIZE
    if settings.DB_POOL_MAX_SIZE:
        kwargs["max_overflow"] = max(
            0, settings.DB_POOL_MAX_SIZE - (settings.DB_POOL_MIN_SIZE or 5)
        )
    return kwargs


engine = create_async_engine(str(settings.DATABASE_URL), **_engine_kwargs())

# expire_on_commit=False so ORM objects stay readable after commit
# (lazy refresh is not possible outside a greenlet).
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


# ============================================================
# FastAPI dependency
# ============================================================
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a database session for the duration of a request.

    Usage:
        @router.get("/")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# ============================================================
# Health Check
# ============================================================
async def check_db_connection() -> bool:
    """Return True if the database answers a trivial query."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
