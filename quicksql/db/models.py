from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from ..errors import StatementError

# Named bindings for text() statements, or a positional tuple for the
# driver's native paramstyle.
Bindings = Union[dict[str, Any], tuple[Any, ...]]


class StatementKind(str, Enum):
    SELECT = "select"
    DESCRIBE = "describe"
    PRAGMA = "pragma"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def returns_rows(self) -> bool:
        return self in (StatementKind.SELECT, StatementKind.DESCRIBE, StatementKind.PRAGMA)

    @property
    def returns_rowcount(self) -> bool:
        return self in (StatementKind.UPDATE, StatementKind.DELETE)


class Dialect(str, Enum):
    """Schema-introspection flavour of the connected database."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"

    @classmethod
    def from_name(cls, name: str) -> "Dialect":
        """
        Map a SQLAlchemy dialect name to an introspection flavour.

        Anything that is neither SQLite nor MySQL/MariaDB is assumed to expose
        information_schema.columns.
        """
        if name == "sqlite":
            return cls.SQLITE
        if name in ("mysql", "mariadb"):
            return cls.MYSQL
        return cls.POSTGRESQL


@dataclass(frozen=True)
class Statement:
    """
    A built statement, ready for execution.
    """
    kind: StatementKind
    sql: str
    bindings: Bindings


@dataclass(frozen=True)
class StatementResult:
    """
    Outcome of a single execution.

    Exactly one of rows/rowcount/last_insert_id is meaningful on success,
    depending on kind. On failure only error is set. Truthiness follows ok,
    so an UPDATE that matched nothing (rowcount 0) is still truthy.
    """
    kind: Optional[StatementKind]
    sql: str
    bindings: Bindings
    rows: Optional[list[dict[str, Any]]] = None
    rowcount: Optional[int] = None
    last_insert_id: Any = None
    error: Optional[str] = None

    @classmethod
    def failure(
        cls,
        kind: Optional[StatementKind],
        sql: str,
        bindings: Bindings,
        error: str,
    ) -> "StatementResult":
        return cls(kind=kind, sql=sql, bindings=bindings, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def value(self) -> Any:
        """Rows, affected-row count or last insert id; None on failure."""
        if not self.ok or self.kind is None:
            return None
        if self.kind.returns_rows:
            return self.rows
        if self.kind.returns_rowcount:
            return self.rowcount
        return self.last_insert_id

    def unwrap(self) -> Any:
        """
        Return value, raising StatementError if the statement failed.
        """
        if not self.ok:
            raise StatementError(self.error or "", sql=self.sql, bindings=self.bindings)
        return self.value
