"""
Cache store interface for stream pages and item details.

Backends only move raw JSON strings; this module owns key construction and
(de)serialization so every backend stores the same representation.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..exceptions import CacheError
from ..models.stream import PriorityItem, StreamFilter, StreamPage

STREAM_KEY_PREFIX = "stream:"
ITEM_KEY_PREFIX = "item:"


def stream_key(user_id: str, stream_filter: StreamFilter, limit: int, cursor: Optional[str]) -> str:
    """Cache key for one feed page request."""
    cursor_part = cursor if cursor else "none"
    return f"{STREAM_KEY_PREFIX}{user_id}:{stream_filter.value}:{limit}:{cursor_part}"


def item_key(user_id: str, item_id: str) -> str:
    """Cache key for one item detail, scoped to its owner."""
    return f"{ITEM_KEY_PREFIX}{user_id}:{item_id}"


class StreamCache(ABC):
    """Key/value cache with per-entry TTL."""

    @abstractmethod
    async def get_raw(self, key: str) -> Optional[str]:
        """Return the stored value, or None on a miss.

        Raises:
            CacheError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def set_raw(self, key: str, value: str, ttl: int) -> None:
        """Store a value that expires after ``ttl`` seconds.

        Raises:
            CacheError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def delete(self, *keys: str) -> None:
        """Remove keys; missing keys are ignored."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the backend is reachable."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None

    async def get_stream(self, key: str) -> Optional[StreamPage]:
        """Get a cached feed page."""
        raw = await self.get_raw(key)
        if raw is None:
            return None
        try:
            return StreamPage.model_validate_json(raw)
        except ValueError as e:
            raise CacheError(f"Failed to decode cached stream {key}: {e}") from e

    async def set_stream(self, key: str, page: StreamPage, ttl: int) -> None:
        """Cache a feed page."""
        await self.set_raw(key, page.model_dump_json(by_alias=True), ttl)

    async def get_stream_item(self, key: str) -> Optional[PriorityItem]:
        """Get a cached item detail."""
        raw = await self.get_raw(key)
        if raw is None:
            return None
        try:
            return PriorityItem.model_validate_json(raw)
        except ValueError as e:
            raise CacheError(f"Failed to decode cached item {key}: {e}") from e

    async def set_stream_item(self, key: str, item: PriorityItem, ttl: int) -> None:
        """Cache an item detail."""
        await self.set_raw(key, item.model_dump_json(by_alias=True), ttl)
