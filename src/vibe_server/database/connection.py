"""
Shared PostgreSQL connection pool.

All database modules acquire connections through get_db_connection(). The
pool is opened in the FastAPI lifespan and closed on shutdown.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

import psycopg.pq
from psycopg_pool import AsyncConnectionPool

from vibe_server.config.settings import get_db_connection_string

logger = logging.getLogger(__name__)

# Module-level pool cache keyed by connection string
_db_pool_cache = {}


async def _configure_postgres_connection(conn):
    """
    Configure PostgreSQL connection at creation time (before the pool manages it).
    """
    conn.prepare_threshold = 0  # Disable prepared statements
    await conn.set_autocommit(True)


def get_or_create_pool() -> AsyncConnectionPool:
    """
    Get or create the shared connection pool.

    Returns:
        AsyncConnectionPool instance (not yet opened)
    """
    db_uri = get_db_connection_string()

    if db_uri not in _db_pool_cache:
        _db_pool_cache[db_uri] = AsyncConnectionPool(
            conninfo=db_uri,
            min_size=1,
            max_size=10,
            configure=_configure_postgres_connection,
            check=AsyncConnectionPool.check_connection,
            open=False,
        )

    return _db_pool_cache[db_uri]


async def open_pool() -> AsyncConnectionPool:
    """Open the pool and validate it with a simple query."""
    pool = get_or_create_pool()
    await pool.open()
    async with pool.connection() as conn:
        await conn.execute("SELECT 1")
    logger.info("Database pool opened")
    return pool


async def close_pool() -> None:
    """Close the pool if it is open."""
    pool = get_or_create_pool()
    if not pool.closed:
        await pool.close()
        logger.info("Database pool closed")


@asynccontextmanager
async def get_db_connection():
    """
    Shared database connection context manager using connection pooling.

    Use row_factory per-cursor, not on connection:
        async with get_db_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute("SELECT * FROM projects")
    """
    pool = get_or_create_pool()

    if pool.closed:
        raise RuntimeError(
            "Database pool is not open. "
            "Pool must be opened during server startup in the app lifespan."
        )

    async with pool.connection() as conn:
        try:
            yield conn
        finally:
            # Return the connection IDLE even if cleanup was interrupted
            status = conn.info.transaction_status
            if status != psycopg.pq.TransactionStatus.IDLE:
                logger.warning(
                    f"Connection not in IDLE state (status: {status.name}). "
                    "Attempting to clean up connection state."
                )
                try:
                    if status == psycopg.pq.TransactionStatus.ACTIVE:
                        await conn.cancel_safe()
                        await asyncio.sleep(0.01)
                        await conn.rollback()
                    elif status in (
                        psycopg.pq.TransactionStatus.INTRANS,
                        psycopg.pq.TransactionStatus.INERROR,
                    ):
                        await conn.rollback()
                except Exception as cleanup_error:
                    logger.error(
                        f"Error during connection state cleanup: {cleanup_error}",
                        exc_info=True,
                    )
