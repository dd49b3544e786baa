"""
Cache store backends for stream pages and item details.
"""

import logging

from .base import StreamCache, stream_key, item_key
from .memory import MemoryCache
from .redis_cache import RedisStreamCache
from ..config.settings import CacheConfig

logger = logging.getLogger(__name__)


def create_cache(config: CacheConfig) -> StreamCache:
    """Build the cache backend named by the configuration."""
    if config.backend == "redis":
        logger.info(f"Using Redis cache (pool size {config.redis_pool_size})")
        return RedisStreamCache.from_url(config.redis_url, pool_size=config.redis_pool_size)
    if config.backend == "memory":
        logger.info("Using in-process memory cache")
        return MemoryCache()
    raise ValueError(f"Unsupported cache backend: {config.backend}")


__all__ = [
    'StreamCache',
    'MemoryCache',
    'RedisStreamCache',
    'stream_key',
    'item_key',
    'create_cache',
]
