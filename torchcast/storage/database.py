"""
SQLite blob store for local runs and tests.

Mirrors the bucket/key layout of the object store in a single table so the
pipelines behave identically against either backend.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite
import structlog

from ..errors import BlobNotFound

logger = structlog.get_logger()

# SQL Schema
SCHEMA = """
-- Blobs table: one row per (bucket, key)
CREATE TABLE IF NOT EXISTS blobs (
    bucket TEXT NOT NULL,
    key TEXT NOT NULL,
    body TEXT NOT NULL,
    content_type TEXT NOT NULL DEFAULT 'text/plain; charset=utf-8',
    updated_at TIMESTAMP NOT NULL,
    PRIMARY KEY (bucket, key)
);

CREATE INDEX IF NOT EXISTS idx_blobs_updated_at ON blobs(updated_at);
"""


class SQLiteBlobStore:
    """Async SQLite implementation of BlobStore."""

    def __init__(self, db_path: Path | str = "data/torchcast.db"):
        self.db_path = Path(db_path) if str(db_path) != ":memory:" else db_path
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Open database connection."""
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        await self._connection.execute("PRAGMA journal_mode = WAL")
        logger.info(f"Connected to blob database: {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def initialize(self) -> None:
        """Create tables and indexes."""
        if not self._connection:
            await self.connect()
        await self._connection.executescript(SCHEMA)
        await self._connection.commit()
        logger.info("Blob schema initialized")

    @property
    def connection(self) -> aiosqlite.Connection:
        if not self._connection:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def get_text(self, bucket: str, key: str) -> str:
        async with self.connection.execute(
            "SELECT body FROM blobs WHERE bucket = ? AND key = ?", (bucket, key)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            raise BlobNotFound(bucket, key)
        return row["body"]

    async def put_text(
        self,
        bucket: str,
        key: str,
        text: str,
        content_type: str = "text/plain; charset=utf-8",
    ) -> None:
        await self.connection.execute(
            """
            INSERT INTO blobs (bucket, key, body, content_type, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(bucket, key) DO UPDATE SET
                body = excluded.body,
                content_type = excluded.content_type,
                updated_at = excluded.updated_at
            """,
            (bucket, key, text, content_type, datetime.now(timezone.utc).isoformat()),
        )
        await self.connection.commit()
        logger.debug("blob.put", bucket=bucket, key=key, size=len(text))

    async def list_keys(self, bucket: str, prefix: str = "") -> list[str]:
        # substr comparison keeps LIKE wildcards in prefixes literal
        async with self.connection.execute(
            "SELECT key FROM blobs WHERE bucket = ? AND substr(key, 1, ?) = ? ORDER BY key",
            (bucket, len(prefix), prefix),
        ) as cursor:
            rows = await cursor.fetchall()
        return [row["key"] for row in rows]

    async def delete_key(self, bucket: str, key: str) -> None:
        await self.connection.execute(
            "DELETE FROM blobs WHERE bucket = ? AND key = ?", (bucket, key)
        )
        await self.connection.commit()

    async def __aenter__(self) -> "SQLiteBlobStore":
        await self.connect()
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def init_blob_database(db_path: Path | str = "data/torchcast.db") -> SQLiteBlobStore:
    """Initialize and return a SQLite blob store."""
    store = SQLiteBlobStore(db_path)
    await store.connect()
    await store.initialize()
    return store
