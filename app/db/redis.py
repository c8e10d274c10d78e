"""
Redis Connection Module

This module provides async Redis connection management for the ARQ job
queue that delivers outgoing email. Requests never talk to SMTP directly:
they enqueue a job and return, and a separate worker process sends it.
"""

import logging
from typing import Optional

from redis.asyncio import Redis, ConnectionPool
from arq.connections import RedisSettings, ArqRedis, create_pool

from app.core.config import settings

# ============================================================
# Logging Setup
# ============================================================
logger = logging.getLogger(__name__)

# ============================================================
# Redis Connection Pool (for general Redis operations)
# ============================================================

_redis_pool: Optional[ConnectionPool] = None

def get_redis_pool() -> ConnectionPool:
    """
    Get or create the Redis connection pool.

    Created once during app startup, reused thereafter.
    """
    global _redis_pool

    if _redis_pool is None:
        _redis_pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=10,
            decode_responses=False,
        )
        logger.info(f"Redis connection pool created: {settings.REDIS_URL}")

    return _redis_pool


async def get_redis() -> Redis:
    """Redis client bound to the shared pool."""
    pool = get_redis_pool()
    return Redis(connection_pool=pool)


async def close_redis_pool():
    """Close Redis connection pool during app shutdown."""
    global _redis_pool

    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis connection pool closed")


# ============================================================
# ARQ Redis Settings (for task queue)
# ============================================================

def get_arq_redis_settings() -> RedisSettings:
    """
    Get Redis settings for the ARQ queue, parsed from REDIS_URL.

    Format: redis://[[username]:[password]@]host[:port][/db-number]
    """
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    redis_settings.conn_timeout = 10
    redis_settings.conn_retries = 5
    redis_settings.conn_retry_delay = 1
    return redis_settings

# ============================================================
# ARQ Connection Pool (for enqueueing tasks)
# ============================================================

_arq_pool: Optional[ArqRedis] = None


async def get_arq_pool() -> ArqRedis:
    """
    Get or create the ARQ Redis pool for enqueueing tasks.

    Usage:
        pool = await get_arq_pool()
        await pool.enqueue_job('send_email_job', recipients=[...], subject=..., html=...)
    """
    global _arq_pool

    if _arq_pool is None:
        _arq_pool = await create_pool(get_arq_redis_settings())
        logger.info("ARQ Redis pool created")

    return _arq_pool


async def close_arq_pool():
    """Close ARQ Redis pool during shutdown."""
    global _arq_pool

    if _arq_pool is not None:
        await _arq_pool.close()
        _arq_pool = None
        logger.info("ARQ Redis pool closed")

# ============================================================
# Health Check
# ============================================================

async def check_redis_connection() -> bool:
    """
    Check if Redis is reachable.

    Returns:
        True if Redis responds to PING, False otherwise
    """
    try:
        redis = await get_redis()
        response = await redis.ping()
        return bool(response)
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        return False
