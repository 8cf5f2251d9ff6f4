# booking/config/redis.py
"""Redis connection used for health checks (Celery talks to its own broker URL)"""
import redis.asyncio as redis
from typing import Optional

from booking.config.settings import get_settings

_redis_pool: Optional[redis.ConnectionPool] = None


def get_redis_pool() -> redis.ConnectionPool:
    global _redis_pool
    if _redis_pool is None:
        settings = get_settings()
        _redis_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            retry_on_timeout=True,
            socket_connect_timeout=2,
        )
    return _redis_pool


async def get_redis() -> redis.Redis:
    """Get Redis client from pool"""
    return redis.Redis(connection_pool=get_redis_pool())


async def ping_redis() -> bool:
    client = await get_redis()
    try:
        return bool(await client.ping())
    finally:
        await client.aclose()
