from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from ..errors import UnsafeStatementError
from .helpers import normalize_bindings, validate_identifier
from .models import Statement, StatementKind

Quote = Callable[[str], str]

UPDATE_PREFIX = "update_"


def _no_quote(name: str) -> str:
    return name


def _where_bindings(bindings: Any) -> dict[str, Any]:
    params = normalize_bindings(bindings)
    if isinstance(params, tuple):
        raise TypeError(
            "WHERE bindings for generated statements must be a mapping of "
            "placeholder name -> value"
        )
    return params


def where_clause(verb: str, where: str, all_rows: bool) -> str:
    """
    " WHERE <where>", or "" when all_rows is set and where is empty.

    Raises:
        UnsafeStatementError: where is empty and all_rows is not set
    """
    where = where.strip()
    if where:
        return f" WHERE {where}"
    if not all_rows:
        raise UnsafeStatementError(
            f"{verb} without a WHERE clause would affect every row; "
            "pass all_rows=True to do this deliberately"
        )
    return ""


def build_select(
    table: str,
    where: str = "",
    bindings: Any = None,
    fields: str = "*",
    quote: Quote = _no_quote,
) -> Statement:
    """
    SELECT <fields> FROM <table> [WHERE <where>].

    fields and where are raw SQL fragments; values belong in bindings.
    """
    table = validate_identifier(table, "table")
    sql = f"SELECT {fields} FROM {quote(table)}"
    where = where.strip()
    if where:
        sql += f" WHERE {where}"
    return Statement(StatementKind.SELECT, sql, normalize_bindings(bindings))


def build_insert(
    table: str,
    values: Mapping[str, Any],
    columns: Sequence[str],
    quote: Quote = _no_quote,
) -> Statement:
    """
    INSERT INTO <table> (<columns>) VALUES (<:column, ...>).

    columns are the already-filtered field names; each gets one named
    placeholder bound to values[column].
    """
    table = validate_identifier(table, "table")
    col_names = ", ".join(quote(c) for c in columns)
    placeholders = ", ".join(f":{c}" for c in columns)
    sql = f"INSERT INTO {quote(table)} ({col_names}) VALUES ({placeholders})"
    params = {c: values[c] for c in columns}
    return Statement(StatementKind.INSERT, sql, params)


def build_update(
    table: str,
    values: Mapping[str, Any],
    columns: Sequence[str],
    where: str,
    bindings: Any = None,
    *,
    all_rows: bool = False,
    quote: Quote = _no_quote,
) -> Statement:
    """
    UPDATE <table> SET col = :update_col, ... WHERE <where>.

    SET placeholders live in the update_ namespace so they cannot shadow
    placeholders the caller uses in the WHERE clause.

    Raises:
        UnsafeStatementError: where is empty and all_rows is not set
        ValueError: a caller binding already uses an update_ placeholder
    """
    table = validate_identifier(table, "table")
    where_sql = where_clause("UPDATE", where, all_rows)

    params = _where_bindings(bindings)
    set_clauses = []
    for col in columns:
        key = f"{UPDATE_PREFIX}{col}"
        if key in params:
            raise ValueError(
                f"Binding {key!r} collides with the SET placeholder for column {col!r}"
            )
        set_clauses.append(f"{quote(col)} = :{key}")
        params[key] = values[col]

    sql = f"UPDATE {quote(table)} SET {', '.join(set_clauses)}{where_sql}"
    return Statement(StatementKind.UPDATE, sql, params)


def build_delete(
    table: str,
    where: str,
    bindings: Any = None,
    *,
    all_rows: bool = False,
    quote: Quote = _no_quote,
) -> Statement:
    """
    DELETE FROM <table> WHERE <where>.

    Raises:
        UnsafeStatementError: where is empty and all_rows is not set
    """
    table = validate_identifier(table, "table")
    where_sql = where_clause("DELETE", where, all_rows)
    sql = f"DELETE FROM {quote(table)}{where_sql}"
    return Statement(StatementKind.DELETE, sql, normalize_bindings(bindings))
