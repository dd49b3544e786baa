"""
Data access layer for the Gravity BFF.

This module provides read access to the priority item store.

Public Interface:
    - StreamRepository interface and its SQLite implementation
    - Pooled database connection
    - Migration utilities
    - Factory for repository creation

Example Usage:
    ```python
    from gravity_bff.data import RepositoryFactory, run_migrations

    factory = RepositoryFactory(backend="sqlite", db_path="data/gravity.db")
    await run_migrations(await factory.get_connection())

    repo = await factory.get_stream_repository()
    items, next_cursor = await repo.fetch_page("user-1", StreamFilter.ALL, None, 20)
    ```
"""

from .base import (
    StreamRepository,
    DatabaseConnection,
    clamp_limit,
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
)

from .sqlite import (
    SQLiteConnection,
    SQLiteStreamRepository,
    to_storage_timestamp,
    from_storage_timestamp,
)

from .repositories import RepositoryFactory

from .migrations import (
    MigrationRunner,
    run_migrations,
)

__all__ = [
    # Abstract interfaces
    "StreamRepository",
    "DatabaseConnection",
    "clamp_limit",
    "DEFAULT_PAGE_LIMIT",
    "MAX_PAGE_LIMIT",

    # SQLite implementations
    "SQLiteConnection",
    "SQLiteStreamRepository",
    "to_storage_timestamp",
    "from_storage_timestamp",

    # Repository factory
    "RepositoryFactory",

    # Migrations
    "MigrationRunner",
    "run_migrations",
]
