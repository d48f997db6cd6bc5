"""
Dialect Shim Result Types

The route layer is written against a MySQL-style client convention:
every call returns a ``(payload, fields)`` pair where ``payload`` is
either the selected rows or, for write statements, a header carrying
``insertId`` / ``affectedRows``. These types give that convention a
stable Python shape, independent of the driver underneath.

Author: Your Name
Version: 1.0.0
"""

import enum
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union


class StatementKind(str, enum.Enum):
    """Statement classes that get distinct result shapes."""
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    OTHER = "other"

    @property
    def is_write(self) -> bool:
        return self in (StatementKind.INSERT, StatementKind.UPDATE, StatementKind.DELETE)


_INSERT_RE = re.compile(r"^INSERT\s+INTO\b", re.IGNORECASE)
_UPDATE_RE = re.compile(r"^UPDATE\b", re.IGNORECASE)
_DELETE_RE = re.compile(r"^DELETE\b", re.IGNORECASE)
_SELECT_RE = re.compile(r"^(SELECT|WITH)\b", re.IGNORECASE)


def classify_statement(sql: str) -> StatementKind:
    """
    Classify a statement from its leading keyword.

    Classification always looks at the caller's original SQL, before any
    rewriting, so an INSERT keeps its header shape even after a
    ``RETURNING`` clause has been appended.
    """
    text = sql.strip()
    if _INSERT_RE.match(text):
        return StatementKind.INSERT
    if _UPDATE_RE.match(text):
        return StatementKind.UPDATE
    if _DELETE_RE.match(text):
        return StatementKind.DELETE
    if _SELECT_RE.match(text):
        return StatementKind.SELECT
    return StatementKind.OTHER


@dataclass
class ResultHeader:
    """
    MySQL-style result header for INSERT / UPDATE / DELETE.

    Attributes:
        insert_id: Primary key of the inserted row (``insertId``), None for
            updates, deletes and bulk inserts
        affected_rows: Rows touched by the statement (``affectedRows``)
        changed_rows: Mirrors ``affected_rows``; PostgreSQL does not
            distinguish matched from changed rows
    """
    insert_id: Optional[int] = None
    affected_rows: int = 0
    changed_rows: int = 0


Row = dict[str, Any]
Rows = list[Row]


@dataclass
class QueryResult:
    """
    Result of one shim call.

    Unpacks like the two-element array a MySQL client returns::

        rows, fields = await pool.execute("SELECT ...")
        header, _ = await pool.execute("INSERT ...")
    """
    payload: Union[Rows, ResultHeader]
    fields: list[str] = field(default_factory=list)

    def __iter__(self):
        yield self.payload
        yield self.fields
