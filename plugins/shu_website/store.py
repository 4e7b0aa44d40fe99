"""
SQLite-backed content store for scraped website content and its change log.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiosqlite

from core.errors import DuplicateContentError, StoreError
from core.infra.db import Database
from core.interfaces import ContentStore
from core.models import ChangeEvent, ContentRecord, StoredContent, utcnow


logger = logging.getLogger(__name__)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS website_content (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source_url TEXT NOT NULL,
    content_type TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    metadata TEXT NOT NULL DEFAULT '{}',
    last_scraped_at TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (source_url, title)
);

CREATE INDEX IF NOT EXISTS idx_website_content_scraped
    ON website_content(last_scraped_at);

CREATE TABLE IF NOT EXISTS content_notifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    content_id INTEGER NOT NULL REFERENCES website_content(id),
    change_type TEXT NOT NULL CHECK (change_type IN ('new', 'updated')),
    previous_content TEXT,
    new_content TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_content_notifications_content
    ON content_notifications(content_id);
"""

_CONTENT_COLUMNS = "id, source_url, content_type, title, content, metadata, last_scraped_at"


def _row_to_content(row: aiosqlite.Row) -> StoredContent:
    return StoredContent(
        id=row["id"],
        source_url=row["source_url"],
        content_type=row["content_type"],
        title=row["title"],
        content=row["content"],
        metadata=json.loads(row["metadata"] or "{}"),
        last_scraped_at=row["last_scraped_at"],
    )


class SqliteContentStore(ContentStore):
    """Content store persisting to the ``website_content`` and
    ``content_notifications`` tables."""

    def __init__(self, db_url: str = "content.db", db: Optional[Database] = None):
        self.db = db or Database(db_url)
        self._initialized = False

    async def open(self) -> None:
        if self._initialized:
            return
        try:
            await self.db.connect()
            await self.db.executescript(_SCHEMA)
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to open content store: {e}") from e
        self._initialized = True

    async def close(self) -> None:
        await self.db.close()
        self._initialized = False

    async def find_by_key(self, source_url: str, title: str) -> Optional[StoredContent]:
        await self.open()
        try:
            rows = await self.db.fetch_all(
                f"SELECT {_CONTENT_COLUMNS} FROM website_content "
                "WHERE source_url = ? AND title = ? LIMIT 2",
                (source_url, title),
            )
        except aiosqlite.Error as e:
            raise StoreError(f"Lookup failed for ({source_url}, {title}): {e}") from e

        if len(rows) > 1:
            raise DuplicateContentError(source_url, title, len(rows))
        return _row_to_content(rows[0]) if rows else None

    async def insert(self, record: ContentRecord) -> int:
        await self.open()
        scraped_at = record.last_scraped_at or utcnow()
        try:
            return await self.db.execute_insert(
                """
                INSERT INTO website_content
                    (source_url, content_type, title, content, metadata, last_scraped_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.source_url,
                    record.content_type,
                    record.title,
                    record.content,
                    json.dumps(record.metadata),
                    scraped_at.isoformat(),
                ),
            )
        except aiosqlite.Error as e:
            raise StoreError(f"Insert failed for {record.title!r}: {e}") from e

    async def update(
        self,
        content_id: int,
        *,
        content: str,
        metadata: Dict[str, Any],
        last_scraped_at: datetime,
    ) -> None:
        await self.open()
        try:
            cursor = await self.db.execute(
                """
                UPDATE website_content
                SET content = ?, metadata = ?, last_scraped_at = ?
                WHERE id = ?
                """,
                (content, json.dumps(metadata), last_scraped_at.isoformat(), content_id),
            )
        except aiosqlite.Error as e:
            raise StoreError(f"Update failed for content {content_id}: {e}") from e
        if cursor.rowcount == 0:
            raise StoreError(f"Update matched no row for content {content_id}")

    async def log_change(self, event: ChangeEvent) -> None:
        await self.open()
        try:
            await self.db.execute(
                """
                INSERT INTO content_notifications
                    (content_id, change_type, previous_content, new_content, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    event.content_id,
                    event.change_type.value,
                    event.previous_content,
                    event.new_content,
                    event.created_at.isoformat(),
                ),
            )
        except aiosqlite.Error as e:
            raise StoreError(f"Change log append failed for content {event.content_id}: {e}") from e

    async def recent(self, limit: int) -> List[StoredContent]:
        await self.open()
        try:
            rows = await self.db.fetch_all(
                f"SELECT {_CONTENT_COLUMNS} FROM website_content "
                "ORDER BY last_scraped_at DESC, id DESC LIMIT ?",
                (limit,),
            )
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to read recent content: {e}") from e
        return [_row_to_content(row) for row in rows]

    async def list_changes(self, content_id: Optional[int] = None) -> List[ChangeEvent]:
        """Read the change log in append order, optionally for one record."""
        await self.open()
        sql = (
            "SELECT content_id, change_type, previous_content, new_content, created_at "
            "FROM content_notifications"
        )
        params: tuple = ()
        if content_id is not None:
            sql += " WHERE content_id = ?"
            params = (content_id,)
        rows = await self.db.fetch_all(sql + " ORDER BY id", params)
        return [
            ChangeEvent(
                content_id=row["content_id"],
                change_type=row["change_type"],
                previous_content=row["previous_content"],
                new_content=row["new_content"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    async def all_content(self) -> List[StoredContent]:
        await self.open()
        rows = await self.db.fetch_all(f"SELECT {_CONTENT_COLUMNS} FROM website_content ORDER BY id")
        return [_row_to_content(row) for row in rows]
