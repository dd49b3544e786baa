"""
Test doubles and database seeding helpers.
"""

import json
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from gravity_bff.cache.base import StreamCache
from gravity_bff.data.base import StreamRepository, clamp_limit
from gravity_bff.data.sqlite import to_storage_timestamp
from gravity_bff.exceptions import CacheError
from gravity_bff.models.stream import (
    Priority,
    PriorityItem,
    SourceType,
    StreamFilter,
    User,
)
from gravity_bff.stream.cursor import encode_cursor

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


async def insert_user(conn, user_id: str, name: str, email: Optional[str] = None,
                      avatar_url: Optional[str] = None) -> None:
    await conn.execute(
        "INSERT INTO users (id, name, email, avatar_url) VALUES (?, ?, ?, ?)",
        (user_id, name, email, avatar_url),
    )


async def insert_item(conn, user_id: str, item_id: str, timestamp: datetime,
                      priority: str = "medium", is_unread: bool = True,
                      source: str = "email", title: Optional[str] = None,
                      snippet: Optional[str] = None) -> None:
    await conn.execute(
        """
        INSERT INTO priority_items
            (id, user_id, title, source, priority, is_unread, snippet, item_timestamp)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (item_id, user_id, title or f"Title {item_id}", source, priority,
         1 if is_unread else 0, snippet, to_storage_timestamp(timestamp)),
    )


async def add_participant(conn, user_id: str, item_id: str, participant_id: str) -> None:
    await conn.execute(
        "INSERT INTO priority_item_participants (user_id, item_id, participant_id) VALUES (?, ?, ?)",
        (user_id, item_id, participant_id),
    )


async def insert_message(conn, user_id: str, item_id: str, message_id: str,
                         timestamp: datetime, sender_id: Optional[str] = None,
                         sender_type: str = "other", content_type: str = "text",
                         content: str = "", event_details: Optional[str] = None,
                         social_details: Optional[str] = None,
                         attachments: Optional[str] = None,
                         ai_insights: Optional[str] = None,
                         full_content_html: Optional[str] = None) -> None:
    await conn.execute(
        """
        INSERT INTO messages
            (id, user_id, item_id, sender_id, sender_type, content_type, content,
             full_content_html, message_timestamp, event_details, social_details,
             attachments, ai_insights)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (message_id, user_id, item_id, sender_id, sender_type, content_type, content,
         full_content_html, to_storage_timestamp(timestamp), event_details,
         social_details, attachments, ai_insights),
    )


def calendar_event_json(**overrides) -> str:
    data = {
        "id": "evt-1",
        "title": "Quarterly review",
        "startTime": "2024-03-02T09:00:00Z",
        "endTime": "2024-03-02T10:00:00Z",
        "attendees": [{"id": "u-alice", "name": "Alice"}],
        "meetingLink": "https://meet.example.com/abc",
    }
    data.update(overrides)
    return json.dumps(data)


def make_item(item_id: str, timestamp: datetime, priority: Priority = Priority.MEDIUM,
              is_unread: bool = True) -> PriorityItem:
    return PriorityItem(
        id=item_id,
        title=f"Title {item_id}",
        source=SourceType.EMAIL,
        priority=priority,
        is_unread=is_unread,
        timestamp=timestamp,
        participants=[User(id="u-alice", name="Alice")],
    )


class FakeStreamRepository(StreamRepository):
    """In-memory repository that records how often it is hit."""

    def __init__(self, items: Optional[List[PriorityItem]] = None):
        self.items = items or []
        self.page_calls: List[Tuple[str, StreamFilter, object, int]] = []
        self.detail_calls: List[Tuple[str, str]] = []
        self.error: Optional[Exception] = None

    async def fetch_page(self, user_id, stream_filter, cursor, limit):
        self.page_calls.append((user_id, stream_filter, cursor, limit))
        if self.error:
            raise self.error
        limit = clamp_limit(limit)
        rows = sorted(self.items, key=lambda i: (i.timestamp, i.id), reverse=True)
        if stream_filter == StreamFilter.HIGH:
            rows = [i for i in rows if i.priority == Priority.HIGH]
        elif stream_filter == StreamFilter.UNREAD:
            rows = [i for i in rows if i.is_unread]
        if cursor is not None:
            rows = [i for i in rows if (i.timestamp, i.id) < (cursor.timestamp, cursor.id)]
        page = rows[:limit + 1]
        next_cursor = None
        if len(page) > limit:
            page = page[:limit]
            next_cursor = encode_cursor(page[-1].timestamp, page[-1].id)
        return [i.model_copy() for i in page], next_cursor

    async def fetch_detail(self, user_id, item_id):
        self.detail_calls.append((user_id, item_id))
        if self.error:
            raise self.error
        for item in self.items:
            if item.id == item_id:
                return item.model_copy(update={"messages": item.messages or []})
        return None

    async def get_participants(self, user_id, item_id):
        return []

    async def get_messages(self, user_id, item_id):
        return []


class FailingCache(StreamCache):
    """Cache whose backend is unreachable."""

    def __init__(self):
        self.get_attempts = 0
        self.set_attempts = 0

    async def get_raw(self, key):
        self.get_attempts += 1
        raise CacheError("connection refused")

    async def set_raw(self, key, value, ttl):
        self.set_attempts += 1
        raise CacheError("connection refused")

    async def delete(self, *keys):
        raise CacheError("connection refused")

    async def ping(self):
        return False


