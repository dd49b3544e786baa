"""
SQLite implementation of the item store using aiosqlite.

This module provides pooled async connections and the stream repository:
keyset-paginated feed pages and fully assembled item details.
"""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import aiosqlite
from pydantic import TypeAdapter

from .base import DatabaseConnection, StreamRepository, clamp_limit
from ..exceptions import StorageError
from ..models.stream import (
    AIInsight,
    Attachment,
    CalendarEvent,
    ContentType,
    EventPayload,
    Message,
    Priority,
    PriorityItem,
    SenderType,
    SocialContent,
    SocialPayload,
    SourceType,
    StreamFilter,
    TextPayload,
    User,
)
from ..stream.cursor import Cursor, encode_cursor

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fixed-width UTC text so that lexical order is chronological order. The year
# is padded separately because strftime("%Y") does not pad years below 1000.
STORAGE_TIME_FORMAT = "-%m-%dT%H:%M:%S.%fZ"

_attachments_adapter = TypeAdapter(List[Attachment])
_insights_adapter = TypeAdapter(List[AIInsight])


def to_storage_timestamp(value: datetime) -> str:
    """Format a datetime the way item and message timestamps are stored.

    Naive datetimes are taken to be UTC. Aware datetimes whose UTC instant
    falls outside the representable range clamp to ``datetime.min`` or
    ``datetime.max``.
    """
    if value.tzinfo is not None:
        try:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            # A negative offset pushes the instant past the end of time
            value = datetime.max if value.utcoffset() < timedelta(0) else datetime.min
    return f"{value.year:04d}" + value.strftime(STORAGE_TIME_FORMAT)


def from_storage_timestamp(value: str) -> datetime:
    """Parse a stored timestamp into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SQLiteConnection(DatabaseConnection):
    """SQLite database connection with connection pooling."""

    def __init__(self, db_path: str, pool_size: int = 5):
        self.db_path = db_path
        # Every connection to ":memory:" opens its own private database
        self.pool_size = 1 if db_path == ":memory:" else pool_size
        self._connections: List[aiosqlite.Connection] = []
        self._available: asyncio.Queue = asyncio.Queue(maxsize=self.pool_size)
        self._lock = asyncio.Lock()
        self._initialized = False

    async def connect(self) -> None:
        """Establish database connection pool."""
        async with self._lock:
            if self._initialized:
                return

            # Ensure database directory exists
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await aiosqlite.connect(self.db_path)
                conn.row_factory = aiosqlite.Row
                # WAL lets readers proceed while a writer holds the database
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA foreign_keys=ON")
                self._connections.append(conn)
                await self._available.put(conn)

            self._initialized = True

    async def disconnect(self) -> None:
        """Close all database connections."""
        async with self._lock:
            if not self._initialized:
                return

            for conn in self._connections:
                await conn.close()

            self._connections.clear()
            self._available = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False

    @asynccontextmanager
    async def _get_connection(self):
        """Get a connection from the pool."""
        if not self._initialized:
            await self.connect()

        conn = await self._available.get()
        try:
            yield conn
        finally:
            self._available.put_nowait(conn)

    async def execute(self, query: str, params: Optional[tuple] = None) -> Any:
        """Execute a database statement and commit."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            await conn.commit()
            return cursor

    async def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        """Fetch a single row from the database."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            row = await cursor.fetchone()
            if row:
                return dict(row)
            return None

    async def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """Fetch all rows from the database."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            row = await self.fetch_one("SELECT 1 AS ok")
        except sqlite3.Error as e:
            logger.warning(f"Database ping failed: {e}")
            return False
        return bool(row and row["ok"] == 1)


class SQLiteStreamRepository(StreamRepository):
    """SQLite implementation of the stream repository."""

    ITEM_COLUMNS = "id, title, source, priority, is_unread, snippet, item_timestamp"

    def __init__(self, connection: DatabaseConnection):
        self.connection = connection

    async def fetch_page(
        self,
        user_id: str,
        stream_filter: StreamFilter,
        cursor: Optional[Cursor],
        limit: Optional[int],
    ) -> Tuple[List[PriorityItem], Optional[str]]:
        """Fetch one keyset-paginated page of a user's stream."""
        limit = clamp_limit(limit)

        conditions = ["user_id = ?"]
        params: List[Any] = [user_id]

        if stream_filter == StreamFilter.HIGH:
            conditions.append("priority = ?")
            params.append(Priority.HIGH.value)
        elif stream_filter == StreamFilter.UNREAD:
            conditions.append("is_unread = 1")

        # Exclusive keyset bound: strictly after the last item already seen
        if cursor is not None:
            conditions.append("(item_timestamp, id) < (?, ?)")
            params.extend([to_storage_timestamp(cursor.timestamp), cursor.id])

        query = f"""
        SELECT {self.ITEM_COLUMNS}
        FROM priority_items
        WHERE {' AND '.join(conditions)}
        ORDER BY item_timestamp DESC, id DESC
        LIMIT ?
        """
        # One extra row tells us whether another page exists
        params.append(limit + 1)

        rows = await self._fetch_all(query, tuple(params), "query stream")
        items = [self._convert(self._row_to_item, row, "item") for row in rows]

        next_cursor = None
        if len(items) > limit:
            items = items[:limit]
            last = items[-1]
            next_cursor = encode_cursor(last.timestamp, last.id)

        for item in items:
            item.participants = await self.get_participants(user_id, item.id)

        return items, next_cursor

    async def fetch_detail(self, user_id: str, item_id: str) -> Optional[PriorityItem]:
        """Fetch a single item with participants and its message thread."""
        query = f"""
        SELECT {self.ITEM_COLUMNS}
        FROM priority_items
        WHERE user_id = ? AND id = ?
        """
        row = await self._fetch_one(query, (user_id, item_id), "get stream item")
        if not row:
            return None

        item = self._convert(self._row_to_item, row, "item")
        item.participants = await self.get_participants(user_id, item_id)
        item.messages = await self.get_messages(user_id, item_id)
        return item

    async def get_participants(self, user_id: str, item_id: str) -> List[User]:
        """Get all participants of an item."""
        query = """
        SELECT u.id, u.name, u.email, u.avatar_url
        FROM users u
        JOIN priority_item_participants pip ON u.id = pip.participant_id
        WHERE pip.user_id = ? AND pip.item_id = ?
        ORDER BY u.id
        """
        rows = await self._fetch_all(query, (user_id, item_id), "query participants")
        return [self._convert(self._row_to_user, row, "participant") for row in rows]

    async def get_messages(self, user_id: str, item_id: str) -> List[Message]:
        """Get an item's messages, oldest first."""
        query = """
        SELECT m.id, m.sender_type, m.content_type, m.content,
               m.full_content_html, m.message_timestamp,
               m.event_details, m.social_details, m.attachments, m.ai_insights,
               u.id AS sender_id, u.name AS sender_name,
               u.email AS sender_email, u.avatar_url AS sender_avatar_url
        FROM messages m
        LEFT JOIN users u ON m.sender_id = u.id
        WHERE m.user_id = ? AND m.item_id = ?
        ORDER BY m.message_timestamp ASC, m.id ASC
        """
        rows = await self._fetch_all(query, (user_id, item_id), "query messages")
        return [self._convert(self._row_to_message, row, "message") for row in rows]

    async def _fetch_all(self, query: str, params: tuple, action: str) -> List[Dict[str, Any]]:
        try:
            return await self.connection.fetch_all(query, params)
        except sqlite3.Error as e:
            logger.error(f"Failed to {action}: {e}")
            raise StorageError(f"Failed to {action}: {e}") from e

    async def _fetch_one(self, query: str, params: tuple, action: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.connection.fetch_one(query, params)
        except sqlite3.Error as e:
            logger.error(f"Failed to {action}: {e}")
            raise StorageError(f"Failed to {action}: {e}") from e

    @staticmethod
    def _convert(converter: Callable[[Dict[str, Any]], T], row: Dict[str, Any], kind: str) -> T:
        """Run a row converter, reporting bad rows as storage errors."""
        try:
            return converter(row)
        except (KeyError, ValueError) as e:
            raise StorageError(
                f"Malformed {kind} row {row.get('id')!r}: {e}",
                context={"row_id": row.get("id")},
            ) from e

    def _row_to_item(self, row: Dict[str, Any]) -> PriorityItem:
        """Convert database row to PriorityItem object."""
        return PriorityItem(
            id=row['id'],
            title=row['title'],
            source=SourceType(row['source']),
            priority=Priority(row['priority']),
            is_unread=bool(row['is_unread']),
            snippet=row['snippet'],
            timestamp=from_storage_timestamp(row['item_timestamp']),
        )

    def _row_to_user(self, row: Dict[str, Any]) -> User:
        """Convert database row to User object."""
        return User(
            id=row['id'],
            name=row['name'],
            email=row['email'],
            avatar_url=row['avatar_url'],
        )

    def _row_to_message(self, row: Dict[str, Any]) -> Message:
        """Convert a joined message row to a Message.

        Structured blobs are decoded field by field; an unreadable blob only
        empties its own field.
        """
        message_id = row['id']

        sender_info = None
        if row['sender_id'] is not None and row['sender_name'] is not None:
            sender_info = User(
                id=row['sender_id'],
                name=row['sender_name'],
                email=row['sender_email'],
                avatar_url=row['sender_avatar_url'],
            )

        content_type = row['content_type']
        if content_type == ContentType.EVENT.value:
            payload = EventPayload(event_details=self._decode_blob(
                message_id, "event_details", row['event_details'],
                CalendarEvent.model_validate_json,
            ))
        elif content_type == ContentType.SOCIAL.value:
            payload = SocialPayload(social_content=self._decode_blob(
                message_id, "social_details", row['social_details'],
                SocialContent.model_validate_json,
            ))
        else:
            if content_type != ContentType.TEXT.value:
                logger.warning(
                    f"Unknown content type {content_type!r} on message {message_id}, treating as text"
                )
            payload = TextPayload()

        attachments = self._decode_blob(
            message_id, "attachments", row['attachments'],
            _attachments_adapter.validate_json,
        )
        ai_insights = self._decode_blob(
            message_id, "ai_insights", row['ai_insights'],
            _insights_adapter.validate_json,
        )

        return Message(
            id=message_id,
            sender_type=SenderType(row['sender_type']),
            sender_info=sender_info,
            content=row['content'] or "",
            timestamp=from_storage_timestamp(row['message_timestamp']),
            payload=payload,
            attachments=attachments or [],
            ai_insights=ai_insights or [],
            full_content_html=row['full_content_html'],
        )

    @staticmethod
    def _decode_blob(
        message_id: str,
        field_name: str,
        raw: Optional[Any],
        decoder: Callable[[Any], T],
    ) -> Optional[T]:
        """Decode one JSON blob, returning None when it is empty or malformed."""
        if raw is None or raw == "" or raw == b"":
            return None
        try:
            return decoder(raw)
        except ValueError as e:
            logger.warning(f"Ignoring malformed {field_name} on message {message_id}: {e}")
            return None
