"""Counter caches backing request rate limits."""

import asyncio
import time
from typing import Dict, Optional, Tuple

import redis.asyncio as redis_asyncio
from redis.exceptions import RedisError

from ...exceptions import StorageError
from ...logging_config import get_logger

logger = get_logger(__name__)


class InMemoryRateLimitCache:
    def __init__(self):
        # store: key -> (count, expire_at)
        self.store: Dict[str, Tuple[int, Optional[float]]] = {}
        self.lock = asyncio.Lock()

    async def incr(self, key: str) -> int:
        async with self.lock:
            count, expire_at = self.store.get(key, (0, None))
            if expire_at is not None and time.time() >= expire_at:
                # window elapsed, start over
                count, expire_at = 0, None
            count += 1
            self.store[key] = (count, expire_at)
            return count

    async def expire(self, key: str, seconds: int) -> None:
        async with self.lock:
            entry = self.store.get(key)
            if entry is None:
                return
            self.store[key] = (entry[0], time.time() + int(seconds))

    async def close(self) -> None:
        return


class RedisRateLimitCache:
    def __init__(self, client):
        self.client = client

    @classmethod
    def from_url(cls, url: str, timeout_seconds: float = 5.0) -> "RedisRateLimitCache":
        client = redis_asyncio.from_url(
            url,
            decode_responses=False,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        return cls(client)

    async def incr(self, key: str) -> int:
        try:
            return int(await self.client.incr(key))
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise StorageError("rate limit counter unavailable") from e

    async def expire(self, key: str, seconds: int) -> None:
        try:
            await self.client.expire(key, seconds)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise StorageError("rate limit counter unavailable") from e

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except (RedisError, OSError) as e:
            logger.debug("redis_client_close_failed", error=str(e))
