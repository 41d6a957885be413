"""SQLite connection holding the jobs table."""

from pathlib import Path
from typing import Optional
import logging

import aiosqlite

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    business_id TEXT NOT NULL,
    pipeline_key TEXT NOT NULL,
    status TEXT NOT NULL,
    steps TEXT NOT NULL DEFAULT '[]',
    input TEXT NOT NULL DEFAULT '{}',
    result TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_jobs_business ON jobs(business_id, created_at DESC);
"""


class Database:
    """
    One autocommit aiosqlite connection per process.

    ``connect`` applies the schema; statements are serialized by aiosqlite's
    worker thread, so the job store needs no locking of its own.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: Optional[aiosqlite.Connection] = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        if self._conn is not None:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode = WAL")
        await conn.executescript(SCHEMA)
        self._conn = conn
        logger.info(f"Job database ready at {self.db_path}")

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        logger.info(f"Job database {self.db_path} closed")

    async def execute(self, sql: str, params: tuple = ()) -> None:
        await self._require().execute(sql, params)

    async def fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        async with self._require().execute(sql, params) as cursor:
            return [dict(row) for row in await cursor.fetchall()]

    async def fetch_one(self, sql: str, params: tuple = ()) -> Optional[dict]:
        rows = await self.fetch_all(sql, params)
        return rows[0] if rows else None

    def _require(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError(f"Database {self.db_path} is not connected")
        return self._conn
