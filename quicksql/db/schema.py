from __future__ import annotations

from typing import Any, Iterable, Mapping

from .builders import Quote, _no_quote
from .helpers import validate_identifier
from .models import Dialect, Statement, StatementKind


def introspection_statement(
    dialect: Dialect,
    table: str,
    quote: Quote = _no_quote,
) -> tuple[Statement, str]:
    """
    Column-listing statement for table and the row key holding the column name.
    """
    table = validate_identifier(table, "table")

    if dialect is Dialect.SQLITE:
        return Statement(StatementKind.PRAGMA, f"PRAGMA table_info({quote(table)})", {}), "name"

    if dialect is Dialect.MYSQL:
        return Statement(StatementKind.DESCRIBE, f"DESCRIBE {quote(table)}", {}), "Field"

    sql = (
        "SELECT column_name FROM information_schema.columns "
        "WHERE table_schema = current_schema() AND table_name = :table_name "
        "ORDER BY ordinal_position"
    )
    return Statement(StatementKind.SELECT, sql, {"table_name": table}), "column_name"


def column_names(rows: Iterable[Mapping[str, Any]], key: str) -> list[str]:
    names = []
    for row in rows:
        # information_schema column labels come back upper-cased on some servers
        value = row[key] if key in row else row[key.upper()]
        names.append(str(value))
    return names


def intersect_columns(columns: Iterable[str], fields: Mapping[str, Any]) -> list[str]:
    """
    Columns that are also keys of fields, in schema order, without duplicates.
    """
    seen: set[str] = set()
    result = []
    for col in columns:
        if col in fields and col not in seen:
            seen.add(col)
            result.append(col)
    return result
