"""Optional TTL cache for aggregated contexts.

The aggregator consults a cache only around aggregate_context(); loading
strategies never see it. Two backends are provided: an in-process dict
and a SQLite file accessed through aiosqlite. Neither deduplicates
in-flight requests, so concurrent misses for the same key both load.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path

import aiosqlite

from repoctx.schemas.config import CacheBackend, CacheConfig
from repoctx.schemas.context import Context, LoadingOptions

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS contexts (
    cache_key    TEXT PRIMARY KEY,
    context_json TEXT NOT NULL,
    expires_at   REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_contexts_expires ON contexts(expires_at);
"""


def cache_key(root_path: str, options: LoadingOptions) -> str:
    """Stable key for one (root, options) pair."""
    payload = json.dumps(
        {"root": root_path, "options": options.model_dump(mode="json")},
        sort_keys=True,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ContextCache(ABC):
    """Keyed store of Context objects with a fixed time-to-live."""

    def __init__(self, ttl: int) -> None:
        self._ttl = ttl

    @abstractmethod
    async def get(self, key: str) -> Context | None:
        """Return the cached context, or None if missing or expired."""

    @abstractmethod
    async def set(self, key: str, context: Context) -> None:
        """Store a context under key."""

    @abstractmethod
    async def clear(self) -> None:
        """Drop every entry."""

    async def close(self) -> None:
        """Release any held resources."""


class MemoryContextCache(ContextCache):
    """In-process cache. Entries expire ``ttl`` seconds after insertion."""

    def __init__(self, ttl: int = 3600) -> None:
        super().__init__(ttl)
        self._entries: dict[str, tuple[float, Context]] = {}

    async def get(self, key: str) -> Context | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, context = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return context.model_copy(deep=True)

    async def set(self, key: str, context: Context) -> None:
        self._entries[key] = (time.monotonic() + self._ttl, context.model_copy(deep=True))

    async def clear(self) -> None:
        self._entries.clear()


class SqliteContextCache(ContextCache):
    """Cache persisted to a SQLite file.

    Contexts are stored as JSON. The connection is opened lazily on first
    use and must be released with close().
    """

    def __init__(self, db_path: str, ttl: int = 3600) -> None:
        super().__init__(ttl)
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def _connect(self) -> aiosqlite.Connection:
        if self._db is None:
            resolved = Path(self._db_path).expanduser()
            resolved.parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(str(resolved))
            await self._db.execute("PRAGMA journal_mode=WAL")
            await self._db.executescript(_SCHEMA)
            await self._db.commit()
            logger.info("Context cache database initialized at %s", resolved)
        return self._db

    async def get(self, key: str) -> Context | None:
        db = await self._connect()
        async with db.execute(
            "SELECT context_json, expires_at FROM contexts WHERE cache_key = ?",
            (key,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        if time.time() >= row[1]:
            await db.execute("DELETE FROM contexts WHERE cache_key = ?", (key,))
            await db.commit()
            return None
        return Context.model_validate_json(row[0])

    async def set(self, key: str, context: Context) -> None:
        db = await self._connect()
        await db.execute(
            "INSERT OR REPLACE INTO contexts (cache_key, context_json, expires_at) "
            "VALUES (?, ?, ?)",
            (key, context.model_dump_json(), time.time() + self._ttl),
        )
        await db.commit()

    async def clear(self) -> None:
        db = await self._connect()
        await db.execute("DELETE FROM contexts")
        await db.commit()

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None


def create_cache(config: CacheConfig) -> ContextCache | None:
    """Build the cache described by config, or None when disabled."""
    if config.backend is CacheBackend.MEMORY:
        return MemoryContextCache(ttl=config.ttl)
    if config.backend is CacheBackend.SQLITE:
        return SqliteContextCache(config.db_path, ttl=config.ttl)
    return None
