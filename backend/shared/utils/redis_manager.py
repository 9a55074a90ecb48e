"""
Redis connection manager for the reconciliation services.
Only used for cross-instance run locks; the pipelines keep no other state in Redis.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
from redis.asyncio import Redis

from shared.config import Settings, get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

RUN_LOCK_KEY = "lock:pipeline:{pipeline}"


class RedisManager:
    """Manages the async Redis connection and the run-lock helpers."""

    # Lua script: atomically delete only if we hold the lock
    _RELEASE_LOCK_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    redis.call("del", KEYS[1])
    return 1
end
return 0
"""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._pool: Optional[Redis] = None

    async def connect(self) -> None:
        self._pool = aioredis.from_url(
            self._settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
            retry_on_timeout=True,
        )
        await self._pool.ping()
        logger.info("redis_connected")

    async def disconnect(self) -> None:
        if self._pool:
            await self._pool.aclose()
            logger.info("redis_disconnected")

    @property
    def client(self) -> Redis:
        if self._pool is None:
            raise RuntimeError("RedisManager not connected. Call connect() first.")
        return self._pool

    async def try_acquire_lock(self, pipeline: str, owner: str, ttl_s: int) -> bool:
        """Attempt to take the pipeline's run lock using SET NX."""
        key = RUN_LOCK_KEY.format(pipeline=pipeline)
        return bool(await self.client.set(key, owner, nx=True, ex=ttl_s))

    async def release_lock(self, pipeline: str, owner: str) -> bool:
        """Atomically release the run lock only if we hold it."""
        key = RUN_LOCK_KEY.format(pipeline=pipeline)
        result = await self.client.eval(self._RELEASE_LOCK_SCRIPT, 1, key, owner)
        return bool(result)

    @asynccontextmanager
    async def run_lock(self, pipeline: str, owner: str, ttl_s: int) -> AsyncIterator[bool]:
        """
        Hold the run lock for the body of the block.

        Yields False without entering the lock when another instance holds it.
        """
        acquired = await self.try_acquire_lock(pipeline, owner, ttl_s)
        if not acquired:
            logger.warning("run_lock_busy", pipeline=pipeline)
            yield False
            return
        try:
            yield True
        finally:
            released = await self.release_lock(pipeline, owner)
            if not released:
                logger.warning("run_lock_expired_before_release", pipeline=pipeline, ttl_s=ttl_s)
