"""
Schema migrations for the SQLite item store.

Migrations are ordered, idempotent and recorded in ``schema_migrations`` so
that each runs at most once per database.
"""

import logging
from typing import List, Tuple

from .base import DatabaseConnection

logger = logging.getLogger(__name__)


MIGRATIONS: List[Tuple[int, str, List[str]]] = [
    (
        1,
        "create stream tables",
        [
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT,
                avatar_url TEXT
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS priority_items (
                id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                title TEXT NOT NULL,
                source TEXT NOT NULL,
                priority TEXT NOT NULL,
                is_unread INTEGER NOT NULL DEFAULT 1,
                snippet TEXT,
                item_timestamp TEXT NOT NULL,
                PRIMARY KEY (user_id, id)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS priority_item_participants (
                user_id TEXT NOT NULL,
                item_id TEXT NOT NULL,
                participant_id TEXT NOT NULL REFERENCES users(id),
                PRIMARY KEY (user_id, item_id, participant_id),
                FOREIGN KEY (user_id, item_id) REFERENCES priority_items(user_id, id)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                item_id TEXT NOT NULL,
                sender_id TEXT,
                sender_type TEXT NOT NULL,
                content_type TEXT NOT NULL DEFAULT 'text',
                content TEXT NOT NULL DEFAULT '',
                full_content_html TEXT,
                message_timestamp TEXT NOT NULL,
                event_details TEXT,
                social_details TEXT,
                attachments TEXT,
                ai_insights TEXT,
                FOREIGN KEY (user_id, item_id) REFERENCES priority_items(user_id, id)
            )
            """,
        ],
    ),
    (
        2,
        "add stream indexes",
        [
            """
            CREATE INDEX IF NOT EXISTS idx_priority_items_stream
            ON priority_items (user_id, item_timestamp DESC, id DESC)
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_priority_items_priority
            ON priority_items (user_id, priority, item_timestamp DESC, id DESC)
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_priority_items_unread
            ON priority_items (user_id, is_unread, item_timestamp DESC, id DESC)
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_messages_thread
            ON messages (user_id, item_id, message_timestamp)
            """,
        ],
    ),
]


class MigrationRunner:
    """Applies pending schema migrations in order."""

    def __init__(self, connection: DatabaseConnection):
        self.connection = connection

    async def applied_versions(self) -> List[int]:
        """Return the migration versions already applied."""
        await self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                description TEXT NOT NULL,
                applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        rows = await self.connection.fetch_all(
            "SELECT version FROM schema_migrations ORDER BY version"
        )
        return [row['version'] for row in rows]

    async def run(self) -> int:
        """Apply all pending migrations.

        Returns:
            Number of migrations applied
        """
        applied = set(await self.applied_versions())
        count = 0

        for version, description, statements in MIGRATIONS:
            if version in applied:
                continue

            logger.info(f"Applying migration {version}: {description}")
            for statement in statements:
                await self.connection.execute(statement)
            await self.connection.execute(
                "INSERT INTO schema_migrations (version, description) VALUES (?, ?)",
                (version, description),
            )
            count += 1

        if count:
            logger.info(f"Applied {count} migration(s)")
        else:
            logger.debug("Database schema is up to date")
        return count


async def run_migrations(connection: DatabaseConnection) -> int:
    """Apply pending migrations on the given connection."""
    return await MigrationRunner(connection).run()
