"""
Abstract repository interfaces for data access layer.

This module defines the repository pattern interfaces for the item store.
Concrete implementations should inherit from these abstract base classes.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from ..models.stream import Message, PriorityItem, StreamFilter, User
from ..stream.cursor import Cursor

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100


def clamp_limit(limit: Optional[int]) -> int:
    """Clamp a requested page size to [1, MAX_PAGE_LIMIT].

    Missing or non-positive values fall back to DEFAULT_PAGE_LIMIT.
    """
    if limit is None or limit <= 0:
        return DEFAULT_PAGE_LIMIT
    return min(limit, MAX_PAGE_LIMIT)


class StreamRepository(ABC):
    """Abstract repository for priority stream reads."""

    @abstractmethod
    async def fetch_page(
        self,
        user_id: str,
        stream_filter: StreamFilter,
        cursor: Optional[Cursor],
        limit: Optional[int],
    ) -> Tuple[List[PriorityItem], Optional[str]]:
        """
        Fetch one page of a user's stream in canonical order.

        Args:
            user_id: Owner of the stream
            stream_filter: Filter predicate to apply
            cursor: Decoded cursor of the last item already seen, if any
            limit: Requested page size (clamped)

        Returns:
            Tuple of (items, next_cursor); next_cursor is None on the last page

        Raises:
            StorageError: If the store query fails
        """
        pass

    @abstractmethod
    async def fetch_detail(self, user_id: str, item_id: str) -> Optional[PriorityItem]:
        """
        Fetch a single item with participants and its full message thread.

        Args:
            user_id: Owner of the item
            item_id: The item identifier

        Returns:
            The assembled item, or None if no row matches (user_id, item_id)

        Raises:
            StorageError: If the store query fails
        """
        pass

    @abstractmethod
    async def get_participants(self, user_id: str, item_id: str) -> List[User]:
        """
        Get all participants of an item.

        Args:
            user_id: Owner of the item
            item_id: The item identifier

        Returns:
            List of participating users
        """
        pass

    @abstractmethod
    async def get_messages(self, user_id: str, item_id: str) -> List[Message]:
        """
        Get an item's messages in chronological order.

        Args:
            user_id: Owner of the item
            item_id: The item identifier

        Returns:
            List of messages, oldest first
        """
        pass


class DatabaseConnection(ABC):
    """Abstract database connection interface."""

    @abstractmethod
    async def connect(self) -> None:
        """Establish database connection."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close database connection."""
        pass

    @abstractmethod
    async def execute(self, query: str, params: Optional[tuple] = None) -> Any:
        """
        Execute a database statement.

        Args:
            query: SQL statement to execute
            params: Statement parameters

        Returns:
            Statement result
        """
        pass

    @abstractmethod
    async def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        """
        Fetch a single row from the database.

        Args:
            query: SQL query to execute
            params: Query parameters

        Returns:
            Single row as a dictionary, or None if no results
        """
        pass

    @abstractmethod
    async def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """
        Fetch all rows from the database.

        Args:
            query: SQL query to execute
            params: Query parameters

        Returns:
            List of rows as dictionaries
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        pass
