"""
Tests for the cache-aside stream service.
"""

import asyncio

import pytest

from gravity_bff.cache.base import item_key, stream_key
from gravity_bff.cache.memory import MemoryCache
from gravity_bff.config.settings import CacheConfig
from gravity_bff.exceptions import InvalidCursor, InvalidFilter, StorageError
from gravity_bff.models.stream import StreamFilter
from gravity_bff.services.stream import StreamService, validate_filter

from tests.helpers import FailingCache, FakeStreamRepository


class RecordingCache(MemoryCache):
    """Memory cache that remembers the TTL of each write."""

    def __init__(self):
        super().__init__()
        self.ttls = {}

    async def set_raw(self, key, value, ttl):
        self.ttls[key] = ttl
        await super().set_raw(key, value, ttl)


class TestValidateFilter:
    """Tests for filter token parsing."""

    @pytest.mark.parametrize("raw,expected", [
        ("all", StreamFilter.ALL),
        ("high", StreamFilter.HIGH),
        ("unread", StreamFilter.UNREAD),
        ("", StreamFilter.ALL),
    ])
    def test_valid(self, raw, expected):
        assert validate_filter(raw) == expected

    @pytest.mark.parametrize("raw", ["HIGH", "urgent", " all", "all "])
    def test_invalid(self, raw):
        with pytest.raises(InvalidFilter):
            validate_filter(raw)


class TestGetStream:
    """Tests for StreamService.get_stream."""

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, three_items):
        repo = FakeStreamRepository(three_items)
        cache = RecordingCache()
        service = StreamService(repo, cache, CacheConfig(stream_ttl=90))

        first = await service.get_stream("user-1", StreamFilter.ALL, limit=2)
        second = await service.get_stream("user-1", StreamFilter.ALL, limit=2)

        assert len(repo.page_calls) == 1
        assert [i.id for i in first.data] == ["item-1", "item-2"]
        assert second.model_dump() == first.model_dump()
        assert cache.ttls[stream_key("user-1", StreamFilter.ALL, 2, None)] == 90

    @pytest.mark.asyncio
    async def test_cursor_and_limit_are_part_of_the_key(self, three_items):
        repo = FakeStreamRepository(three_items)
        service = StreamService(repo, MemoryCache())

        first = await service.get_stream("user-1", limit=2)
        await service.get_stream("user-1", limit=1)
        following = await service.get_stream("user-1", limit=2, cursor=first.next_cursor)

        assert len(repo.page_calls) == 3
        assert [i.id for i in following.data] == ["item-3"]
        assert following.next_cursor is None

    @pytest.mark.asyncio
    async def test_limit_is_clamped_before_lookup(self, three_items):
        repo = FakeStreamRepository(three_items)
        service = StreamService(repo, MemoryCache())

        await service.get_stream("user-1", limit=0)
        await service.get_stream("user-1", limit=None)

        assert len(repo.page_calls) == 1
        assert repo.page_calls[0][3] == 20

    @pytest.mark.asyncio
    async def test_empty_cursor_means_first_page(self, three_items):
        repo = FakeStreamRepository(three_items)
        service = StreamService(repo, MemoryCache())

        page = await service.get_stream("user-1", cursor="")
        assert [i.id for i in page.data] == ["item-1", "item-2", "item-3"]
        assert repo.page_calls[0][2] is None

    @pytest.mark.asyncio
    async def test_invalid_cursor_before_any_io(self, three_items):
        repo = FakeStreamRepository(three_items)
        cache = FailingCache()
        service = StreamService(repo, cache)

        with pytest.raises(InvalidCursor):
            await service.get_stream("user-1", cursor="%%%")

        assert cache.get_attempts == 0
        assert repo.page_calls == []

    @pytest.mark.asyncio
    async def test_cache_failure_degrades_to_store(self, three_items):
        repo = FakeStreamRepository(three_items)
        cache = FailingCache()
        service = StreamService(repo, cache)

        page = await service.get_stream("user-1", StreamFilter.HIGH)

        assert [i.id for i in page.data] == ["item-1", "item-3"]
        assert cache.get_attempts == 1
        assert cache.set_attempts == 1

    @pytest.mark.asyncio
    async def test_corrupt_cache_entry_is_treated_as_miss(self, three_items):
        repo = FakeStreamRepository(three_items)
        cache = MemoryCache()
        service = StreamService(repo, cache)
        key = stream_key("user-1", StreamFilter.ALL, 20, None)
        await cache.set_raw(key, "{garbage", 60)

        page = await service.get_stream("user-1")

        assert len(page.data) == 3
        assert len(repo.page_calls) == 1

    @pytest.mark.asyncio
    async def test_storage_error_propagates_and_is_not_cached(self, three_items):
        repo = FakeStreamRepository(three_items)
        repo.error = StorageError("database is locked")
        cache = MemoryCache()
        service = StreamService(repo, cache)

        with pytest.raises(StorageError):
            await service.get_stream("user-1")
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_cancelled_request_writes_nothing(self, three_items):
        started = asyncio.Event()

        class SlowRepository(FakeStreamRepository):
            async def fetch_page(self, *args):
                started.set()
                await asyncio.sleep(10)
                return await super().fetch_page(*args)

        cache = MemoryCache()
        service = StreamService(SlowRepository(three_items), cache)

        task = asyncio.create_task(service.get_stream("user-1"))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(cache) == 0


class TestGetStreamItem:
    """Tests for StreamService.get_stream_item."""

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, three_items):
        repo = FakeStreamRepository(three_items)
        cache = RecordingCache()
        service = StreamService(repo, cache, CacheConfig(item_ttl=45))

        first = await service.get_stream_item("user-1", "item-2")
        second = await service.get_stream_item("user-1", "item-2")

        assert first.id == "item-2"
        assert second.model_dump() == first.model_dump()
        assert len(repo.detail_calls) == 1
        assert cache.ttls[item_key("user-1", "item-2")] == 45

    @pytest.mark.asyncio
    async def test_not_found_is_not_cached(self, three_items):
        repo = FakeStreamRepository(three_items)
        cache = MemoryCache()
        service = StreamService(repo, cache)

        assert await service.get_stream_item("user-1", "missing") is None
        assert await service.get_stream_item("user-1", "missing") is None
        assert len(repo.detail_calls) == 2
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_detail_cache_is_per_user(self, three_items):
        repo = FakeStreamRepository(three_items)
        service = StreamService(repo, MemoryCache())

        await service.get_stream_item("user-1", "item-1")
        await service.get_stream_item("user-2", "item-1")

        assert repo.detail_calls == [("user-1", "item-1"), ("user-2", "item-1")]

    @pytest.mark.asyncio
    async def test_cache_failure_degrades_to_store(self, three_items):
        repo = FakeStreamRepository(three_items)
        service = StreamService(repo, FailingCache())

        item = await service.get_stream_item("user-1", "item-3")
        assert item.id == "item-3"
        assert item.messages == []

    @pytest.mark.asyncio
    async def test_health_check_reports_cache(self, three_items):
        service = StreamService(FakeStreamRepository(three_items), FailingCache())
        assert await service.health_check() == {"cache": False}
