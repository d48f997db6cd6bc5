"""
SQL Translator

Rewrites MySQL-flavoured statement text into what the active driver
accepts:

    - ``?`` placeholders become the driver's positional markers
      (``$1, $2, ...`` for asyncpg, ``%s`` for psycopg, ...)
    - ``DATABASE()`` and ``INFORMATION_SCHEMA`` lookups are pointed at
      PostgreSQL's ``current_database()`` / ``public`` schema
    - ``ALTER TABLE t AUTO_INCREMENT = n`` becomes a sequence restart
    - INSERTs get ``RETURNING id`` so an ``insertId`` can be reported
    - ``VALUES ?`` bulk inserts are expanded to one marker per value

Everything here is pure string work so it can be tested without a
database.

Author: Your Name
Version: 1.0.0
"""

import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Sequence, Union

from app.services.dialect.base import StatementKind, classify_statement


PARAMSTYLES = ("qmark", "numeric", "numeric_dollar", "format", "pyformat", "named")

# Quoted literals are matched first so a "?" inside them is left alone.
_TOKEN_RE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\?")

_DATABASE_FN_RE = re.compile(r"\bDATABASE\(\)", re.IGNORECASE)
_INFO_SCHEMA_RE = re.compile(
    r"FROM\s+INFORMATION_SCHEMA\.(COLUMNS|TABLES)\s+WHERE\s+TABLE_SCHEMA\s*=\s*current_database\(\)",
    re.IGNORECASE,
)
_AUTO_INCREMENT_RE = re.compile(
    r"ALTER\s+TABLE\s+([A-Za-z_][A-Za-z0-9_]*)\s+AUTO_INCREMENT\s*=\s*(\d+)",
    re.IGNORECASE,
)
_RETURNING_RE = re.compile(r"\bRETURNING\b", re.IGNORECASE)
_BULK_VALUES_RE = re.compile(r"VALUES\s+\?")


def placeholder_for(paramstyle: str, index: int) -> str:
    """Marker for the ``index``-th (1-based) parameter in ``paramstyle``."""
    if paramstyle == "qmark":
        return "?"
    if paramstyle == "numeric":
        return f":{index}"
    if paramstyle == "numeric_dollar":
        return f"${index}"
    if paramstyle in ("format", "pyformat"):
        return "%s"
    if paramstyle == "named":
        return f":p{index}"
    raise ValueError(f"Unsupported paramstyle: {paramstyle!r}")


def convert_placeholders(sql: str, paramstyle: str = "numeric_dollar") -> str:
    """
    Replace ``?`` markers with the driver's positional markers.

    Markers are numbered in textual order, starting at 1, regardless of
    how many parameters the caller passes.

    Example:
        >>> convert_placeholders("SELECT * FROM t WHERE a = ? AND b = ?")
        'SELECT * FROM t WHERE a = $1 AND b = $2'
    """
    placeholder_for(paramstyle, 1)
    counter = 0

    def _replace(match: re.Match) -> str:
        nonlocal counter
        token = match.group(0)
        if token != "?":
            return token
        counter += 1
        return placeholder_for(paramstyle, counter)

    return _TOKEN_RE.sub(_replace, sql)


def count_placeholders(sql: str) -> int:
    return sum(1 for m in _TOKEN_RE.finditer(sql) if m.group(0) == "?")


def rewrite_mysql_functions(sql: str) -> str:
    """Rewrite MySQL-only functions and catalogue lookups for PostgreSQL."""
    sql = _DATABASE_FN_RE.sub("current_database()", sql)
    sql = _INFO_SCHEMA_RE.sub(
        lambda m: f"FROM INFORMATION_SCHEMA.{m.group(1).upper()} WHERE TABLE_SCHEMA = 'public'",
        sql,
    )
    sql = _AUTO_INCREMENT_RE.sub(
        lambda m: f"ALTER SEQUENCE {m.group(1)}_id_seq RESTART WITH {m.group(2)}",
        sql,
    )
    return sql


def ensure_returning_id(sql: str) -> str:
    """Append ``RETURNING id`` to an INSERT that lacks a RETURNING clause."""
    if classify_statement(sql) is not StatementKind.INSERT:
        return sql
    if _RETURNING_RE.search(sql):
        return sql
    return sql.rstrip().rstrip(";").rstrip() + " RETURNING id"


def is_bulk_insert(sql: str, params: Sequence[Any]) -> bool:
    """True for ``INSERT ... VALUES ?`` called with a list of rows."""
    return bool(
        _BULK_VALUES_RE.search(sql)
        and params
        and isinstance(params[0], (list, tuple))
    )


def expand_bulk_values(sql: str, rows: Sequence[Sequence[Any]]) -> tuple[str, list[Any]]:
    """
    Expand ``VALUES ?`` into one ``(?, ?, ...)`` group per row.

    The group width is taken from the first row. Returns the expanded SQL
    (still using ``?`` markers) and the flattened parameter list.
    """
    if not rows:
        raise ValueError("Bulk insert requires at least one row")

    width = len(rows[0])
    group = "(" + ", ".join("?" for _ in range(width)) + ")"
    values_sql = "VALUES " + ", ".join(group for _ in rows)
    flat = [value for row in rows for value in row]
    return _BULK_VALUES_RE.sub(values_sql, sql, count=1), flat


def adapt_value(value: Any, dialect_name: str) -> Any:
    """Adapt a parameter to what the driver can bind."""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if dialect_name == "sqlite":
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, date):
            return value.isoformat()
    return value


@dataclass
class TranslatedStatement:
    """A statement ready to hand to the driver."""
    sql: str
    params: Union[tuple, dict]
    kind: StatementKind
    original_sql: str = ""
    has_params: bool = field(default=False)


@dataclass(frozen=True)
class SqlTranslator:
    """
    Statement translator bound to one target driver.

    Attributes:
        paramstyle: DB-API paramstyle of the driver
        dialect_name: SQLAlchemy dialect name ("postgresql", "sqlite", ...)
        supports_returning: Whether INSERT ... RETURNING is available
    """
    paramstyle: str = "numeric_dollar"
    dialect_name: str = "postgresql"
    supports_returning: bool = True

    @classmethod
    def for_dialect(cls, dialect) -> "SqlTranslator":
        """Build a translator from a SQLAlchemy ``Dialect``."""
        return cls(
            paramstyle=dialect.paramstyle,
            dialect_name=dialect.name,
            supports_returning=bool(getattr(dialect, "insert_returning", False)),
        )

    def translate(
        self, sql: str, params: Sequence[Any] = (), returning: bool = True
    ) -> TranslatedStatement:
        kind = classify_statement(sql)
        text = sql

        if self.dialect_name == "postgresql":
            text = rewrite_mysql_functions(text)

        if kind is StatementKind.INSERT and returning and self.supports_returning:
            text = ensure_returning_id(text)

        params = list(params or ())
        if params and self.paramstyle in ("format", "pyformat"):
            text = text.replace("%", "%%")

        text = convert_placeholders(text, self.paramstyle)

        return TranslatedStatement(
            sql=text,
            params=self.bind_params(params),
            kind=kind,
            original_sql=sql,
            has_params=bool(params),
        )

    def bind_params(self, params: Sequence[Any]) -> Union[tuple, dict]:
        adapted = [adapt_value(v, self.dialect_name) for v in params]
        if self.paramstyle == "named":
            return {f"p{i}": v for i, v in enumerate(adapted, start=1)}
        return tuple(adapted)
