from __future__ import annotations

from typing import Any


class QuickSqlError(Exception):
    """Base exception for quicksql errors."""


class ConfigurationError(QuickSqlError):
    """Invalid service configuration (e.g. a non-callable error callback)."""


class DbConnectError(QuickSqlError):
    """Failed to establish the initial database connection."""


class StatementError(QuickSqlError):
    """A statement failed to prepare or execute."""

    def __init__(self, message: str, sql: str = "", bindings: Any = None) -> None:
        super().__init__(message)
        self.sql = sql
        self.bindings = bindings


class SchemaIntrospectionError(StatementError):
    """The column lookup that precedes an INSERT or UPDATE failed."""


class UnsafeStatementError(QuickSqlError):
    """UPDATE or DELETE requested without a WHERE clause."""
