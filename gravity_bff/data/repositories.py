"""
Repository factory.

This module builds the connection pool and the concrete repository classes
used throughout the application.
"""

from typing import Optional

from .base import StreamRepository
from .sqlite import SQLiteConnection, SQLiteStreamRepository


class RepositoryFactory:
    """Factory for creating repository instances."""

    def __init__(self, backend: str = "sqlite", **config):
        """
        Initialize repository factory.

        Args:
            backend: Database backend to use (only 'sqlite' is supported)
            **config: Backend-specific configuration options
        """
        self.backend = backend
        self.config = config
        self._connection: Optional[SQLiteConnection] = None

    async def get_connection(self) -> SQLiteConnection:
        """Get or create database connection."""
        if self._connection is None:
            if self.backend == "sqlite":
                db_path = self.config.get("db_path", "data/gravity.db")
                pool_size = self.config.get("pool_size", 5)
                self._connection = SQLiteConnection(db_path, pool_size)
                await self._connection.connect()
            else:
                raise ValueError(f"Unsupported backend: {self.backend}")

        return self._connection

    async def get_stream_repository(self) -> StreamRepository:
        """Create and return a stream repository instance."""
        connection = await self.get_connection()
        return SQLiteStreamRepository(connection)

    async def close(self) -> None:
        """Close database connections."""
        if self._connection:
            await self._connection.disconnect()
            self._connection = None
