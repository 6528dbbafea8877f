"""Database connection and migration management."""

from pathlib import Path
from typing import Optional

import asyncpg
import structlog

from identity.config import get_settings
from identity.errors import StoreUnavailableError

logger = structlog.get_logger(__name__)

# Global connection pool
_pool: Optional[asyncpg.Pool] = None

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"


async def get_pool() -> asyncpg.Pool:
    """Get the database connection pool.

    Returns:
        asyncpg connection pool

    Raises:
        StoreUnavailableError: If pool is not initialized
    """
    if _pool is None:
        raise StoreUnavailableError("Database pool not initialized")
    return _pool


async def init_database() -> asyncpg.Pool:
    """Initialize the database connection pool.

    Idempotent: a second call returns the existing pool.

    Returns:
        asyncpg connection pool

    Raises:
        OSError, asyncpg.PostgresError: If the server cannot be reached
    """
    global _pool

    if _pool is not None:
        return _pool

    settings = get_settings()

    try:
        _pool = await asyncpg.create_pool(
            settings.postgres_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=60,
        )
        logger.info(
            "database_pool_created",
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            dsn=settings.postgres_url,
        )
        return _pool
    except Exception as e:
        logger.error("database_pool_creation_failed", error=str(e))
        raise


async def close_database() -> None:
    """Close the database connection pool.

    Safe to call when the pool was never created, e.g. after a failed startup.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("database_pool_closed")


async def run_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> None:
    """Run all SQL migrations in filename order.

    Each file runs in its own transaction, so a failing file leaves no
    partial schema behind. Migrations are idempotent (IF NOT EXISTS) and
    can be re-run safely.

    Args:
        migrations_dir: Directory holding the ``*.sql`` files

    Raises:
        StoreUnavailableError: If the pool is not initialized
        asyncpg.PostgresError: If a migration fails; later files are skipped
    """
    pool = await get_pool()

    if not migrations_dir.exists():
        logger.warning("migrations_directory_not_found", path=str(migrations_dir))
        return

    migration_files = sorted(migrations_dir.glob("*.sql"))

    if not migration_files:
        logger.info("no_migrations_found")
        return

    async with pool.acquire() as conn:
        for migration_file in migration_files:
            try:
                async with conn.transaction():
                    await conn.execute(migration_file.read_text())
                logger.info("migration_applied", file=migration_file.name)
            except Exception as e:
                logger.error(
                    "migration_failed",
                    file=migration_file.name,
                    error=str(e),
                )
                raise


async def health_check() -> bool:
    """Check database connectivity.

    Never raises, so /health can report a missing database as data.

    Returns:
        True if database is healthy, False otherwise
    """
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            result = await conn.fetchval("SELECT 1")
            return result == 1
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return False
