"""
Query helpers for the repository layer.

Each helper runs on the caller's connection when one is passed (so several
statements can share a transaction) and borrows one from the pool otherwise.
psycopg errors are logged and re-raised as DatabaseError.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import psycopg

from scout.db.pool import get_db_connection
from scout.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabaseError(Exception):
    """A query failed. Routes surface it as a generic 500."""

    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


@asynccontextmanager
async def _cursor(
    query: str, params: tuple, operation: str, connection: psycopg.AsyncConnection | None
) -> AsyncGenerator[psycopg.AsyncCursor, None]:
    try:
        if connection is not None:
            async with connection.cursor() as cur:
                await cur.execute(query, params)
                yield cur
        else:
            async with get_db_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    yield cur
    except psycopg.Error as e:
        logger.error("Database query error", operation=operation, query=query[:100], error=str(e))
        raise DatabaseError(f"Query failed: {e}", operation=operation) from e


async def fetch_one(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> dict[str, Any] | None:
    """First row as a dict, or None."""
    async with _cursor(query, params, "fetch_one", connection) as cur:
        return await cur.fetchone()


async def fetch_all(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> list[dict[str, Any]]:
    async with _cursor(query, params, "fetch_all", connection) as cur:
        return await cur.fetchall()


async def fetch_val(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> Any:
    """First column of the first row, or None."""
    row = await fetch_one(query, params, connection=connection)
    return next(iter(row.values())) if row else None


async def execute_query(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> int:
    """Run a statement and return the affected row count."""
    async with _cursor(query, params, "execute", connection) as cur:
        return cur.rowcount
