"""Per-user fixed-window rate limiting backed by Redis.

Used as a route dependency on PIN-gated endpoints (send, swap, PIN set) to
cap brute-force attempts at the transfer PIN.

    key   = "ratelimit:{user_id}:{group}"
    count = INCR key; EXPIRE key 60 on first hit
    count > limit -> RateLimitError (429)
"""

from typing import Annotated

import redis.asyncio as aioredis
from fastapi import Depends

from src.wl_common.errors import RateLimitError
from src.wl_common.redis_client import redis_dependency
from src.wl_gateway.auth.dependencies import get_current_user
from src.wl_gateway.user.db_models import UserModel

WINDOW_SECONDS = 60


class RateLimiter:
    def __init__(self, group: str, limit: int, window_seconds: int = WINDOW_SECONDS) -> None:
        self.group = group
        self.limit = limit
        self.window_seconds = window_seconds

    async def __call__(
        self,
        current_user: Annotated[UserModel, Depends(get_current_user)],
        redis: Annotated[aioredis.Redis, Depends(redis_dependency)],
    ) -> None:
        key = f"ratelimit:{current_user.id}:{self.group}"
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, self.window_seconds)
        if count > self.limit:
            raise RateLimitError()
