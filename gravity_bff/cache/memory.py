"""
In-process cache backend.

Suitable for development and single-process deployments. Entries expire by
TTL only.
"""

import logging
import time
from typing import Callable, Dict, Optional, Tuple

from .base import StreamCache

logger = logging.getLogger(__name__)


class MemoryCache(StreamCache):
    """Dictionary-backed cache with monotonic-clock expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, str]] = {}

    async def get_raw(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    async def set_raw(self, key: str, value: str, ttl: int) -> None:
        self._purge_expired()
        self._entries[key] = (self._clock() + ttl, value)

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._entries.pop(key, None)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries")
