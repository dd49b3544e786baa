"""
Shared fixtures for the Gravity BFF tests.
"""

from datetime import timedelta
from typing import List

import pytest
import pytest_asyncio

from gravity_bff.data.migrations import run_migrations
from gravity_bff.data.sqlite import SQLiteConnection
from gravity_bff.models.stream import Priority, PriorityItem

from tests.helpers import T0, make_item


@pytest_asyncio.fixture
async def connection(tmp_path):
    """Migrated SQLite database in a temporary file."""
    conn = SQLiteConnection(str(tmp_path / "gravity.db"), pool_size=2)
    await conn.connect()
    await run_migrations(conn)
    yield conn
    await conn.disconnect()


@pytest.fixture
def three_items() -> List[PriorityItem]:
    """item-1 (t0, high, unread), item-2 (t0-1h), item-3 (t0-2h, high)."""
    return [
        make_item("item-1", T0, priority=Priority.HIGH),
        make_item("item-2", T0 - timedelta(hours=1), is_unread=False),
        make_item("item-3", T0 - timedelta(hours=2), priority=Priority.HIGH, is_unread=False),
    ]
