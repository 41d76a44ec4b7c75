"""Redis connection pool: rate-limit counters only.

Balances, PIN records and history never live in Redis.
"""

from collections.abc import AsyncGenerator

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or lazily create the shared pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_pool


async def redis_dependency() -> AsyncGenerator[aioredis.Redis, None]:
    """FastAPI dependency wrapper so tests can override the client."""
    yield await get_redis()


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
