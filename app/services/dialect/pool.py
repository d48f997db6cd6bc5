"""
Compatibility Pool

Wraps a SQLAlchemy ``AsyncEngine`` so route code can keep the MySQL
client call convention::

    rows, fields = await pool.execute("SELECT * FROM restaurants WHERE slug = ?", [slug])
    header, _ = await pool.execute("INSERT INTO feedback (...) VALUES (?, ?)", [...])
    header.insert_id, header.affected_rows

Statements are run with ``exec_driver_sql`` after translation, so the
text the caller writes is (almost) the text the driver sees.

Author: Your Name
Version: 1.0.0
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from app.services.dialect.base import (
    QueryResult,
    ResultHeader,
    StatementKind,
)
from app.services.dialect.translator import (
    SqlTranslator,
    expand_bulk_values,
    is_bulk_insert,
)

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# =============================================================================
# STATEMENT EXECUTION
# =============================================================================

async def _run(
    conn: AsyncConnection,
    translator: SqlTranslator,
    sql: str,
    params: Optional[Sequence[Any]],
    autocommit: bool,
    bulk: bool = False,
) -> QueryResult:
    """Translate, execute and reshape one statement on ``conn``."""
    params = list(params or [])
    stmt = translator.translate(sql, params, returning=not bulk)

    try:
        result = await conn.exec_driver_sql(
            stmt.sql, stmt.params if stmt.has_params else None
        )
        shaped = _reshape(result, stmt.kind, translator, bulk)
        if autocommit:
            await conn.commit()
        return shaped
    except Exception as e:
        label = "Bulk insert error" if bulk else "Query error"
        logger.error(f"{label}: {e}")
        logger.error(f"SQL: {stmt.original_sql}")
        logger.error(f"Params: {params}")
        if autocommit and conn.in_transaction():
            await conn.rollback()
        raise


def _reshape(result, kind: StatementKind, translator: SqlTranslator, bulk: bool) -> QueryResult:
    if kind is StatementKind.INSERT:
        insert_id = None
        rows = result.fetchall() if result.returns_rows else []
        if not bulk:
            if translator.supports_returning:
                if rows:
                    insert_id = rows[0]._mapping.get("id")
            else:
                insert_id = result.lastrowid
        affected = max(result.rowcount, len(rows))
        return QueryResult(ResultHeader(insert_id, affected, affected), [])

    if kind.is_write:
        affected = max(result.rowcount, 0)
        return QueryResult(ResultHeader(None, affected, affected), [])

    if not result.returns_rows:
        return QueryResult([], [])

    fields = list(result.keys())
    rows = [dict(row._mapping) for row in result.fetchall()]
    return QueryResult(rows, fields)


# =============================================================================
# TRANSACTION CLIENT
# =============================================================================

class CompatConnection:
    """
    A pooled connection checked out for multi-statement work.

    Statements autocommit until ``begin_transaction()`` is called; after
    that they accumulate until ``commit()`` or ``rollback()``. Always call
    ``release()`` when done (``CompatPool.transaction()`` does it for you).
    """

    def __init__(self, conn: AsyncConnection, translator: SqlTranslator):
        self._conn = conn
        self._translator = translator
        self._in_transaction = False
        self._released = False

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        return await _run(
            self._conn, self._translator, sql, params,
            autocommit=not self._in_transaction,
        )

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        params = list(params or [])
        if is_bulk_insert(sql, params):
            expanded, flat = expand_bulk_values(sql, params[0])
            return await _run(
                self._conn, self._translator, expanded, flat,
                autocommit=not self._in_transaction, bulk=True,
            )
        return await self.execute(sql, params)

    async def begin_transaction(self) -> None:
        if self._conn.in_transaction():
            await self._conn.commit()
        await self._conn.begin()
        self._in_transaction = True

    async def commit(self) -> None:
        await self._conn.commit()
        self._in_transaction = False

    async def rollback(self) -> None:
        await self._conn.rollback()
        self._in_transaction = False

    async def reset_identity(self, table: str) -> None:
        """Restart the id sequence of ``table`` at 1."""
        if not _IDENTIFIER_RE.match(table):
            raise ValueError(f"Invalid table name: {table!r}")
        if self._translator.dialect_name == "sqlite":
            # rowid tables reuse max(id) + 1, nothing to reset
            return
        await self.execute(f"ALTER TABLE {table} AUTO_INCREMENT = 1")

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._in_transaction:
            logger.warning("Connection released inside an open transaction, rolling back")
            await self.rollback()
        await self._conn.close()


# =============================================================================
# POOL
# =============================================================================

class CompatPool:
    """
    MySQL-client-shaped facade over an async SQLAlchemy engine.

    Attributes:
        engine: The underlying ``AsyncEngine`` (owns the real pool)
        translator: Statement translator for the engine's dialect
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.translator = SqlTranslator.for_dialect(engine.dialect)

    @property
    def dialect_name(self) -> str:
        return self.translator.dialect_name

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Run one statement in autocommit mode."""
        async with self.engine.connect() as conn:
            return await _run(conn, self.translator, sql, params, autocommit=True)

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """
        Like ``execute``, plus MySQL's ``VALUES ?`` bulk form::

            await pool.query("INSERT INTO t (a, b) VALUES ?", [[(1, 2), (3, 4)]])
        """
        params = list(params or [])
        if is_bulk_insert(sql, params):
            return await self.bulk_insert(sql, params[0])
        return await self.execute(sql, params)

    async def bulk_insert(self, sql: str, rows: Sequence[Sequence[Any]]) -> QueryResult:
        expanded, flat = expand_bulk_values(sql, rows)
        async with self.engine.connect() as conn:
            return await _run(conn, self.translator, expanded, flat, autocommit=True, bulk=True)

    async def connect(self) -> CompatConnection:
        """Check out a connection; the caller must ``release()`` it."""
        conn = await self.engine.connect()
        return CompatConnection(conn, self.translator)

    async def get_connection(self) -> CompatConnection:
        return await self.connect()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[CompatConnection]:
        """
        Run a block in one transaction.

        Commits when the block exits normally, rolls back and re-raises
        otherwise. The connection is released in both cases.
        """
        conn = await self.connect()
        try:
            await conn.begin_transaction()
            yield conn
            await conn.commit()
        except Exception:
            if conn.in_transaction:
                await conn.rollback()
            raise
        finally:
            await conn.release()

    async def column_exists(self, table: str, column: str) -> bool:
        if self.dialect_name == "sqlite":
            sql = "SELECT COUNT(*) AS count FROM pragma_table_info(?) WHERE name = ?"
        else:
            sql = (
                "SELECT COUNT(*) AS count FROM INFORMATION_SCHEMA.COLUMNS "
                "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = ? AND COLUMN_NAME = ?"
            )
        rows, _ = await self.execute(sql, [table, column])
        return bool(rows and int(rows[0]["count"]) > 0)

    async def test_connection(self) -> bool:
        """Run a trivial query and log whether the database answered."""
        if self.dialect_name == "sqlite":
            sql = "SELECT CURRENT_TIMESTAMP AS server_time"
        else:
            sql = "SELECT NOW() AS server_time"
        try:
            rows, _ = await self.execute(sql)
            logger.info("✅ Database connected successfully")
            logger.info(f"📅 Current time: {rows[0]['server_time'] if rows else None}")
            return True
        except Exception as e:
            logger.error(f"❌ Database connection failed: {e}")
            return False

    async def end(self) -> None:
        await self.engine.dispose()
