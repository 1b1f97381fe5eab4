"""
Async database access (raw SQL) using asyncpg.

`Database` owns the connection pool. `main.py` constructs one per process,
connects it on startup and closes it on shutdown; handlers receive it through
the `get_database` dependency instead of importing a module-level pool.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Iterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg
from fastapi import Request

from . import settings
from .errors import StorageUnavailable


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


@contextmanager
def _storage_errors() -> Iterator[None]:
    try:
        yield
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as exc:
        raise StorageUnavailable(str(exc) or exc.__class__.__name__) from exc


class Database:
    def __init__(
        self,
        dsn: str,
        *,
        min_size: int = 1,
        max_size: int = 5,
        command_timeout: float = 30,
    ) -> None:
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None
        self._conn: asyncpg.Connection | None = None

    @classmethod
    def from_env(cls) -> "Database":
        return cls(
            database_url(),
            min_size=settings.db_pool_min_size(),
            max_size=settings.db_pool_max_size(),
            command_timeout=settings.db_command_timeout(),
        )

    async def connect(self) -> None:
        if self._pool is not None:
            return None
        self._pool = await asyncpg.create_pool(
            dsn=self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=self.command_timeout,
        )

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise StorageUnavailable("DB pool is not initialized. Call connect() on startup.")
        return self._pool

    @property
    def _executor(self) -> asyncpg.Pool | asyncpg.Connection:
        return self._conn if self._conn is not None else self.pool

    def _bound(self, conn: asyncpg.Connection) -> "Database":
        bound = Database(
            self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=self.command_timeout,
        )
        bound._pool = self._pool
        bound._conn = conn
        return bound

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["Database"]:
        """
        Run a block on one pooled connection inside a transaction.

        Yields a handle bound to that connection. The block commits on normal
        exit and rolls back if it raises. Calling this on a bound handle opens
        a savepoint on the same connection.
        """
        with _storage_errors():
            if self._conn is not None:
                async with self._conn.transaction():
                    yield self
                return

            async with self.pool.acquire() as conn:  # type: asyncpg.Connection
                async with conn.transaction():
                    yield self._bound(conn)

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        with _storage_errors():
            row = await self._executor.fetchrow(sql, *args)
        return dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        with _storage_errors():
            rows = await self._executor.fetch(sql, *args)
        return [dict(r) for r in rows]

    async def fetch_val(self, sql: str, *args: Any) -> Any:
        with _storage_errors():
            return await self._executor.fetchval(sql, *args)

    async def execute(self, sql: str, *args: Any) -> None:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
        """
        with _storage_errors():
            await self._executor.execute(sql, *args)

    async def ping(self) -> None:
        await self.fetch_val("SELECT 1")


def get_database(request: Request) -> Database:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise StorageUnavailable("Database is not configured.")
    return db
