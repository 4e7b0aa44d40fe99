"""
Async SQLite database wrapper used by the content store.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple

import aiosqlite


logger = logging.getLogger(__name__)


def resolve_sqlite_path(db_url: str) -> str:
    """Accept plain paths as well as ``sqlite:///path`` / ``sqlite+aiosqlite:///path``."""
    if db_url.startswith("sqlite"):
        if "///" in db_url:
            return db_url.split("///", 1)[-1]
        return db_url.split("//", 1)[-1]
    return db_url


class Database:
    """Async SQLite database wrapper."""

    def __init__(self, db_url: str = "content.db"):
        path = resolve_sqlite_path(db_url)
        self.db_path = path if path == ":memory:" else Path(path)
        self._connection: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Open the connection; no-op when already open."""
        if self._connection:
            return

        if isinstance(self.db_path, Path) and self.db_path.parent != Path("."):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self.db_path, timeout=30)
        self._connection.row_factory = aiosqlite.Row
        await self._connection.execute("PRAGMA journal_mode=WAL;")
        await self._connection.execute("PRAGMA busy_timeout=30000;")
        await self._connection.execute("PRAGMA foreign_keys=ON;")
        logger.debug("Connected to %s", self.db_path)

    async def close(self) -> None:
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _conn(self) -> aiosqlite.Connection:
        if not self._connection:
            await self.connect()
        return self._connection

    async def execute(self, sql: str, params: Tuple[Any, ...] = ()) -> aiosqlite.Cursor:
        """Execute a statement and commit immediately."""
        conn = await self._conn()
        cursor = await conn.execute(sql, params)
        await conn.commit()
        return cursor

    async def execute_insert(self, sql: str, params: Tuple[Any, ...] = ()) -> int:
        """Execute an INSERT and return the new row id."""
        cursor = await self.execute(sql, params)
        return cursor.lastrowid

    async def fetch_all(self, sql: str, params: Tuple[Any, ...] = ()) -> List[aiosqlite.Row]:
        conn = await self._conn()
        cursor = await conn.execute(sql, params)
        return await cursor.fetchall()

    async def executescript(self, script: str) -> None:
        conn = await self._conn()
        await conn.executescript(script)
        await conn.commit()
