"""
Stream service: cache-aside reads over the stream repository.

Both read paths look up the cache first, fall back to the repository on a
miss or a cache failure, then write the result back with a fixed TTL. Cache
failures are logged and never reach the caller.
"""

import logging
from typing import Optional

from ..cache.base import StreamCache, item_key, stream_key
from ..config.settings import CacheConfig
from ..data.base import StreamRepository, clamp_limit
from ..exceptions import CacheError, InvalidFilter
from ..models.stream import PriorityItem, StreamFilter, StreamPage
from ..stream.cursor import decode_cursor

logger = logging.getLogger(__name__)


def validate_filter(raw: str) -> StreamFilter:
    """Parse a filter token.

    Accepts exactly ``all``, ``high`` or ``unread`` (case-sensitive); the
    empty string means ``all``.

    Raises:
        InvalidFilter: For any other value
    """
    if raw == "":
        return StreamFilter.ALL
    try:
        return StreamFilter(raw)
    except ValueError:
        valid = ", ".join(f.value for f in StreamFilter)
        raise InvalidFilter(
            f"invalid filter: {raw!r}",
            user_message=f"Invalid filter: {raw}. Valid values: {valid}",
        ) from None


class StreamService:
    """Serves stream pages and item details through a read-through cache."""

    def __init__(
        self,
        repository: StreamRepository,
        cache: StreamCache,
        cache_config: Optional[CacheConfig] = None,
    ):
        """
        Initialize the stream service.

        Args:
            repository: Source of truth for stream reads
            cache: Cache store for pages and details
            cache_config: TTL settings (defaults apply when omitted)
        """
        self.repository = repository
        self.cache = cache
        self.cache_config = cache_config or CacheConfig()

    async def get_stream(
        self,
        user_id: str,
        stream_filter: StreamFilter = StreamFilter.ALL,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> StreamPage:
        """
        Get one page of a user's priority stream.

        Args:
            user_id: Owner of the stream
            stream_filter: Filter to apply
            limit: Requested page size; clamped to [1, 100], default 20
            cursor: Opaque cursor from a previous page, if any

        Returns:
            The page and the cursor of the next page (None on the last page)

        Raises:
            InvalidCursor: If the cursor cannot be decoded (before any I/O)
            StorageError: If the item store fails
        """
        limit = clamp_limit(limit)
        cursor = cursor or None
        decoded_cursor = decode_cursor(cursor) if cursor is not None else None

        key = stream_key(user_id, stream_filter, limit, cursor)

        try:
            cached = await self.cache.get_stream(key)
        except CacheError as e:
            logger.warning(f"Cache get error for {key}: {e}")
        else:
            if cached is not None:
                logger.debug(f"Cache hit for stream: {key}")
                return cached

        logger.debug(f"Cache miss for stream: {key}")

        items, next_cursor = await self.repository.fetch_page(
            user_id, stream_filter, decoded_cursor, limit
        )
        page = StreamPage(data=items, next_cursor=next_cursor)

        try:
            await self.cache.set_stream(key, page, self.cache_config.stream_ttl)
        except CacheError as e:
            logger.warning(f"Failed to cache stream {key}: {e}")

        return page

    async def get_stream_item(self, user_id: str, item_id: str) -> Optional[PriorityItem]:
        """
        Get full details of one stream item.

        Args:
            user_id: Owner of the item
            item_id: The item identifier

        Returns:
            The item with participants and messages, or None if not found

        Raises:
            StorageError: If the item store fails
        """
        key = item_key(user_id, item_id)

        try:
            cached = await self.cache.get_stream_item(key)
        except CacheError as e:
            logger.warning(f"Cache get error for {key}: {e}")
        else:
            if cached is not None:
                logger.debug(f"Cache hit for item: {key}")
                return cached

        logger.debug(f"Cache miss for item: {key}")

        item = await self.repository.fetch_detail(user_id, item_id)
        if item is None:
            return None

        try:
            await self.cache.set_stream_item(key, item, self.cache_config.item_ttl)
        except CacheError as e:
            logger.warning(f"Failed to cache item {key}: {e}")

        return item

    async def health_check(self) -> dict:
        """Report reachability of the cache backend."""
        return {"cache": await self.cache.ping()}
