"""PostgreSQL access through an asyncpg connection pool.

The pool is owned by a ``Database`` object that the application creates in
its lifespan hook and stores on ``app.state``.  Nothing here is a module
level singleton, so tests can build apps without touching a database.

Usage::

    db = Database(settings)
    await db.connect()
    rows = await db.fetch("SELECT * FROM diary_entries WHERE user_id = $1", user_id)
    await db.close()
"""

from __future__ import annotations

import logging
from typing import Any

import asyncpg

from src.config import Settings

logger = logging.getLogger("haru.db")


class Database:
    """Lifecycle wrapper around an ``asyncpg.Pool``."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._pool: asyncpg.Pool | None = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> asyncpg.Pool:
        """Create the connection pool. Call once at app startup."""
        s = self._settings
        self._pool = await asyncpg.create_pool(
            s.database_url,
            min_size=s.db_pool_min_size,
            max_size=s.db_pool_max_size,
            command_timeout=30,
        )
        logger.info(
            "Database pool initialized (min=%d, max=%d)",
            s.db_pool_min_size,
            s.db_pool_max_size,
        )
        return self._pool

    async def close(self) -> None:
        """Drain the pool. Call at app shutdown."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database pool closed")

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database pool not initialized, call connect() first")
        return self._pool

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a single statement and return its status tag."""
        async with self.pool.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        async with self.pool.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        async with self.pool.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, *args)
