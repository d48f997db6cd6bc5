"""
Dialect Shim Factory

Single entry point for the MySQL-style compatibility pool used by every
route handler.

Usage:
    from app.services.dialect import get_pool

    pool = get_pool()
    rows, fields = await pool.execute("SELECT * FROM restaurants WHERE slug = ?", [slug])

Driver selection follows the configured URL:
    - postgresql+asyncpg://  → $1, $2 markers (default)
    - postgresql+psycopg://  → %s markers
    - sqlite+aiosqlite://    → ? markers (tests)

Author: Your Name
Version: 1.0.0
"""

import logging
from functools import lru_cache

from app.services.dialect.base import (
    QueryResult,
    ResultHeader,
    StatementKind,
    classify_statement,
)
from app.services.dialect.pool import CompatConnection, CompatPool
from app.services.dialect.translator import (
    SqlTranslator,
    convert_placeholders,
    ensure_returning_id,
    expand_bulk_values,
    rewrite_mysql_functions,
)

logger = logging.getLogger(__name__)


@lru_cache()
def get_pool() -> CompatPool:
    """
    Get the shared compatibility pool.

    Wraps the application engine from ``app.database``. The instance is
    cached so all handlers share one translator and one engine pool.

    Returns:
        CompatPool: Pool bound to the configured database
    """
    from app.database import engine

    pool = CompatPool(engine)
    logger.info(
        f"Dialect shim: {pool.dialect_name} "
        f"(paramstyle={pool.translator.paramstyle}, "
        f"returning={pool.translator.supports_returning})"
    )
    return pool


def reset_pool() -> None:
    """
    Clear the cached pool instance.

    The next call to get_pool() wraps the engine again.
    """
    get_pool.cache_clear()
    logger.debug("Dialect pool cache cleared")


__all__ = [
    "get_pool",
    "reset_pool",
    "CompatPool",
    "CompatConnection",
    "QueryResult",
    "ResultHeader",
    "StatementKind",
    "SqlTranslator",
    "classify_statement",
    "convert_placeholders",
    "ensure_returning_id",
    "expand_bulk_values",
    "rewrite_mysql_functions",
]
