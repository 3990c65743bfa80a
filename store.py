# ABOUTME: SQLite-backed async key-value store for notes, voices, and settings
# ABOUTME: Values are JSON documents; absent keys fall back to per-key defaults
from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

import config

logger = logging.getLogger("shadow-reader.store")

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT
);
"""

DEFAULTS: dict[str, Any] = {
    "notes": [],
    "voices": [],
    "associations": {},
    "settings": {},
}


class KeyValueStore:
    """JSON blobs by key in a single SQLite table."""

    def __init__(self, db_path: str = config.DB_PATH):
        self.db_path = db_path

    async def init_db(self):
        """Create the database file and tables if they don't exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as db:
            await db.executescript(SCHEMA)
            await db.commit()

    async def get(self, key: str, default: Any = None) -> Any:
        """Stored value (which may be null), else the key's default, else default."""
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute("SELECT value FROM kv WHERE key = ?", (key,)) as cursor:
                row = await cursor.fetchone()
        if row is not None:
            return json.loads(row[0])
        if key in DEFAULTS:
            return copy.deepcopy(DEFAULTS[key])
        return default

    async def set(self, key: str, value: Any) -> Any:
        now = datetime.now(timezone.utc).isoformat()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at""",
                (key, json.dumps(value, ensure_ascii=False), now),
            )
            await db.commit()
        logger.debug("Stored key %s", key)
        return value

    async def delete(self, key: str) -> bool:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("DELETE FROM kv WHERE key = ?", (key,))
            await db.commit()
            return cursor.rowcount > 0

    async def keys(self) -> list[str]:
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute("SELECT key FROM kv ORDER BY key") as cursor:
                return [row[0] async for row in cursor]
