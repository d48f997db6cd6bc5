"""
Database Connection Module
Handles the async SQLAlchemy engine, schema creation and the legacy
column upgrade. Queries themselves go through the dialect shim.
"""

import logging
import ssl

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.core.config import get_settings

logger = logging.getLogger(__name__)


def _engine_options(settings) -> dict:
    url = settings.sqlalchemy_url
    options = {"echo": settings.db_echo}

    if url.startswith("sqlite"):
        # One connection per checkout; file databases are shared through disk
        options["poolclass"] = NullPool
        return options

    options.update(
        pool_size=settings.db_pool_size,  # Connection pool size
        max_overflow=settings.db_max_overflow,  # Extra connections when pool is full
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=300,
        pool_pre_ping=True,
    )

    if settings.ssl_required:
        # Managed Postgres (Neon, Railway) presents certs we do not pin
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        if "+asyncpg" in url:
            options["connect_args"] = {"ssl": context}
        elif "+psycopg" in url:
            options["connect_args"] = {"sslmode": "require"}

    return options


def create_engine_from_settings(settings=None) -> AsyncEngine:
    """Build the async engine described by the settings."""
    settings = settings or get_settings()
    new_engine = create_async_engine(settings.sqlalchemy_url, **_engine_options(settings))

    if new_engine.dialect.name == "sqlite":
        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


# Create async engine
engine = create_engine_from_settings()


# Base class for all our models
class Base(DeclarativeBase):
    pass


# Columns added after the first deployments; older databases lack them
LEGACY_COLUMNS = [
    ("restaurants", "image_url", "TEXT"),
    ("categories", "restaurant_id", "INTEGER REFERENCES restaurants(id) ON DELETE CASCADE"),
    ("categories", "image_url", "TEXT"),
    ("menu_items", "category_id", "INTEGER REFERENCES categories(id) ON DELETE SET NULL"),
    ("menu_items", "is_veg", "BOOLEAN"),
]


async def upgrade_legacy_schema(pool) -> list[str]:
    """
    Add columns missing from databases created by older releases.

    Returns:
        The ``table.column`` names that were added
    """
    added = []
    for table, column, ddl in LEGACY_COLUMNS:
        if await pool.column_exists(table, column):
            continue
        await pool.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")
        logger.info(f"Added missing column {table}.{column}")
        added.append(f"{table}.{column}")
    return added


async def bootstrap_admin(pool, username) -> bool:
    """Create ``username`` as an admin when the users table is empty."""
    if not username:
        return False

    rows, _ = await pool.execute("SELECT COUNT(*) AS count FROM users")
    if int(rows[0]["count"]) > 0:
        return False

    await pool.execute(
        "INSERT INTO users (username, role, full_name, is_active) VALUES (?, ?, ?, ?)",
        [username, "admin", "Administrator", True],
    )
    logger.info(f"Bootstrapped admin user '{username}'")
    return True


async def init_db():
    """
    Create all tables in database and bring older schemas up to date.
    Called once at application startup.
    """
    from app import models  # noqa: F401  registers tables on Base.metadata
    from app.services.dialect import get_pool

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Database tables created successfully!")

    pool = get_pool()
    await upgrade_legacy_schema(pool)
    await bootstrap_admin(pool, get_settings().bootstrap_admin_username)
