"""
Database connection and pool management
"""

import asyncio
import logging
from typing import Optional

import asyncpg
from fastapi import Request

from config.settings import Settings

logger = logging.getLogger(__name__)

# Raised by asyncpg when the server is unreachable or refuses the connection
CONNECTION_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


async def _create_pool(settings: Settings, min_size: int) -> asyncpg.Pool:
    return await asyncpg.create_pool(
        **settings.connection_kwargs(),
        min_size=min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
        statement_cache_size=0  # pgbouncer compatibility
    )


async def init_database(settings: Settings) -> Optional[asyncpg.Pool]:
    """
    Create the connection pool and check connectivity.

    Connectivity failures are logged and never raised, so the server starts
    even when the database is down. If the pool cannot open its initial
    connections, a lazy pool (min_size=0) is created instead; it connects on
    first acquire, so requests fail individually until the database becomes
    reachable and then succeed without a restart.
    """
    try:
        db_pool = await _create_pool(settings, settings.db_pool_min_size)
    except CONNECTION_ERRORS as e:
        logger.error(f"Error connecting to PostgreSQL: {e}")
        try:
            db_pool = await _create_pool(settings, 0)
        except CONNECTION_ERRORS as e:
            logger.error(f"Error creating lazy connection pool: {e}")
            return None
        logger.warning("Started with a lazy connection pool; connections open on first use")
        return db_pool

    await check_database(db_pool)
    return db_pool


async def check_database(db_pool: Optional[asyncpg.Pool]) -> bool:
    """Run SELECT 1 through the pool; True when the database answers"""
    if db_pool is None:
        return False

    try:
        async with db_pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except CONNECTION_ERRORS as e:
        logger.error(f"Error connecting to PostgreSQL: {e}")
        return False

    logger.info("Database connection successful")
    return True


async def close_database(db_pool: Optional[asyncpg.Pool]):
    """Close database connection pool"""
    if db_pool:
        await db_pool.close()
    logger.info("Database connections closed")


def get_db_pool(request: Request) -> Optional[asyncpg.Pool]:
    """FastAPI dependency returning the pool owned by the running application"""
    return getattr(request.app.state, "db_pool", None)
