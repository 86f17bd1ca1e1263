"""
Async PostgreSQL pool for the delivery log.

A single AsyncConnectionPool is opened in the app lifespan. Connections come
back as dict rows, in autocommit mode, with the session clock pinned to UTC.
"""

import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from scout.config import settings
from scout.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

CLOSE_TIMEOUT_SECONDS = 30.0
STATEMENT_TIMEOUT = "60s"


class DatabasePoolManager:
    """Owns the process-wide pool: open on startup, lend connections, close on shutdown."""

    def __init__(self):
        self.pool: AsyncConnectionPool | None = None
        self._initialized = False
        self._closed = False

    @property
    def ready(self) -> bool:
        return self._initialized and not self._closed and self.pool is not None

    async def initialize(self) -> None:
        if self._initialized:
            logger.warning("Database pool already initialized")
            return
        if self._closed:
            raise RuntimeError("Cannot reinitialize closed pool")

        config = settings.get_db_pool_config()
        pool = AsyncConnectionPool(
            conninfo=settings.DATABASE_URL,
            open=False,
            check=AsyncConnectionPool.check_connection,
            configure=self._configure_connection,
            **config,
        )

        try:
            await pool.open()
            await pool.wait()
            self.pool = pool
            self._initialized = True
            await self._ping()
        except Exception as e:
            logger.error("Failed to initialize database pool", error=str(e))
            self.pool = None
            self._initialized = False
            await pool.close()
            raise RuntimeError(f"Database pool initialization failed: {e}") from e

        logger.info(
            "Database pool ready",
            min_size=config["min_size"],
            max_size=config["max_size"],
            timeout=config["timeout"],
        )

    @staticmethod
    async def _configure_connection(conn: psycopg.AsyncConnection) -> None:
        conn.row_factory = dict_row
        # Idle connections must never sit INTRANS; explicit blocks use transaction()
        await conn.set_autocommit(True)
        await conn.execute(
            sql.SQL("SET application_name = {}").format(
                sql.Literal(f"scout-{settings.environment}")
            )
        )
        await conn.execute("SET timezone = 'UTC'")
        await conn.execute(
            sql.SQL("SET statement_timeout = {}").format(sql.Literal(STATEMENT_TIMEOUT))
        )

    async def _ping(self) -> None:
        async with self.connection() as conn:
            cursor = await conn.execute("SELECT 1 AS ok")
            row = await cursor.fetchone()
        if not row or row["ok"] != 1:
            raise RuntimeError("Database test query returned an unexpected result")

    async def close(self) -> None:
        if not self.ready:
            return

        logger.info("Closing database connection pool")
        try:
            await asyncio.wait_for(self.pool.close(), timeout=CLOSE_TIMEOUT_SECONDS)
        except TimeoutError:
            logger.warning("Database pool close timed out, forcing shutdown")
        finally:
            self._initialized = False
            self._closed = True

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Borrow a pooled connection for the duration of the ``async with`` block."""
        if not self.ready:
            raise RuntimeError("Database pool not initialized. Call initialize() first.")

        async with self.pool.connection() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Borrow a connection inside a transaction: commit on success, roll back on error."""
        async with self.connection() as conn:
            async with conn.transaction():
                yield conn

    async def health_check(self) -> dict[str, Any]:
        """Readiness probe: ping plus a snapshot of pool usage."""
        if not self.ready:
            return {"healthy": False, "error": "Pool not initialized", "service": "database_pool"}

        started = time.time()
        try:
            await self._ping()
        except Exception as e:
            logger.error("Database pool health check failed", error=str(e))
            return {
                "healthy": False,
                "service": "database_pool",
                "error": str(e),
                "error_type": type(e).__name__,
            }

        stats = self.pool.get_stats()
        return {
            "healthy": True,
            "service": "database_pool",
            "connection_time_ms": round((time.time() - started) * 1000, 2),
            "pool_stats": {
                "pool_size": stats.get("pool_size", 0),
                "pool_available": stats.get("pool_available", 0),
                "requests_waiting": stats.get("requests_waiting", 0),
            },
        }


db_pool = DatabasePoolManager()


def get_db_connection():
    """``async with get_db_connection() as conn`` shortcut used by the query helpers."""
    return db_pool.connection()


async def db_health_check() -> dict[str, Any]:
    return await db_pool.health_check()
