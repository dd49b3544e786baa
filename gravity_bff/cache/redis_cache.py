"""
Redis cache backend.

Key structure:
- stream:{user_id}:{filter}:{limit}:{cursor|none} - serialized feed page
- item:{user_id}:{item_id} - serialized item detail

Every key is written with SET ... EX so Redis expires it on its own.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .base import StreamCache
from ..exceptions import CacheError

logger = logging.getLogger(__name__)


class RedisStreamCache(StreamCache):
    """Cache backed by a pooled asyncio Redis client."""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str, pool_size: int = 10) -> "RedisStreamCache":
        """Create a cache with its own connection pool."""
        return cls(redis.Redis.from_url(url, max_connections=pool_size))

    async def get_raw(self, key: str) -> Optional[str]:
        try:
            value = await self.client.get(key)
        except RedisError as e:
            raise CacheError(f"Failed to get {key} from cache: {e}") from e

        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set_raw(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.client.set(key, value, ex=ttl)
        except RedisError as e:
            raise CacheError(f"Failed to set {key} in cache: {e}") from e

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self.client.delete(*keys)
        except RedisError as e:
            raise CacheError(f"Failed to delete keys from cache: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()
