from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from ..config import DbConfig
from ..errors import DbConnectError, SchemaIntrospectionError
from .builders import build_delete, build_insert, build_select, build_update, where_clause
from .helpers import classify_sql, leading_keyword, normalize_bindings
from .metrics import observe_statement
from .models import Bindings, Dialect, Statement, StatementKind, StatementResult
from .reporter import ErrorCallback, ErrorReporter
from .schema import column_names, introspection_statement, intersect_columns

logger = logging.getLogger(__name__)


def _error_message(exc: Exception) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class StatementService:
    """
    Builds and runs SELECT/INSERT/UPDATE/DELETE statements against an Engine.

    Every call runs in its own transaction and returns a StatementResult.
    Database errors never propagate: they come back as a failed result, are
    logged, and are forwarded to the error callback when one is registered.

    INSERT and UPDATE only write columns that exist in the live table; the
    column list is looked up on every call.

    Usage:
        service = StatementService(engine, table_prefix="app_")
        new_id = service.insert("users", {"name": "Alice"}).value
        rows = service.select("users", "id = :id", {"id": new_id}).value
        if not service.update("users", {"name": "Bob"}, "id = :id", {"id": new_id}):
            print(service.last_error)

    A single instance is not safe for concurrent use from several threads.
    """

    def __init__(
        self,
        engine: Engine,
        table_prefix: str = "",
        *,
        error_callback: ErrorCallback | None = None,
        strict_schema: bool = True,
        capture_caller: bool = False,
    ) -> None:
        self.engine = engine
        self.table_prefix = table_prefix
        self.strict_schema = strict_schema
        self.dialect = Dialect.from_name(engine.dialect.name)
        self.reporter = ErrorReporter(error_callback, capture_caller=capture_caller)
        self.connection_error: DbConnectError | None = None
        self._last_result: StatementResult | None = None
        self._probe()

    @classmethod
    def from_config(
        cls,
        config: DbConfig,
        error_callback: ErrorCallback | None = None,
    ) -> "StatementService":
        engine = create_engine(
            config.sqlalchemy_url(),
            pool_pre_ping=True,
            **config.engine_options,
        )
        return cls(
            engine,
            config.table_prefix,
            error_callback=error_callback,
            strict_schema=config.strict_schema,
            capture_caller=config.capture_caller,
        )

    def _probe(self) -> None:
        # A failed connect is recorded, not raised; later calls fail on their own.
        try:
            with self.engine.connect():
                pass
        except SQLAlchemyError as exc:
            self.connection_error = DbConnectError(_error_message(exc))
            logger.info("Connection to %s failed: %s", self.engine.url, self.connection_error)
            self.reporter.report(str(self.connection_error))

    # -- error state ---------------------------------------------------------

    def set_error_callback(self, callback: ErrorCallback | None) -> None:
        self.reporter.set_callback(callback)

    @property
    def last_result(self) -> StatementResult | None:
        return self._last_result

    @property
    def last_error(self) -> str:
        if self._last_result is not None and self._last_result.error:
            return self._last_result.error
        if self._last_result is None and self.connection_error is not None:
            return str(self.connection_error)
        return ""

    @property
    def last_sql(self) -> str:
        return self._last_result.sql if self._last_result is not None else ""

    @property
    def last_bindings(self) -> Bindings:
        return self._last_result.bindings if self._last_result is not None else {}

    # -- builders ------------------------------------------------------------

    def table(self, name: str) -> str:
        """Prefixed table name."""
        return f"{self.table_prefix}{name}"

    def _quote(self, name: str) -> str:
        return self.engine.dialect.identifier_preparer.quote(name)

    def select(
        self,
        table: str,
        where: str = "",
        bindings: Any = None,
        fields: str = "*",
    ) -> StatementResult:
        stmt = build_select(self.table(table), where, bindings, fields, quote=self._quote)
        return self.execute(stmt)

    def insert(self, table: str, fields: Mapping[str, Any]) -> StatementResult:
        """
        Insert the known columns of fields. On success, value is the new row id.
        """
        name = self.table(table)
        columns = self._writable_columns(StatementKind.INSERT, name, fields)
        if isinstance(columns, StatementResult):
            return columns
        return self.execute(build_insert(name, fields, columns, quote=self._quote))

    def update(
        self,
        table: str,
        fields: Mapping[str, Any],
        where: str,
        bindings: Any = None,
        *,
        all_rows: bool = False,
    ) -> StatementResult:
        """
        Update the known columns of fields on rows matching where.
        On success, value is the affected-row count.

        Raises:
            UnsafeStatementError: where is empty and all_rows is not set
        """
        name = self.table(table)
        # Reject an unsafe statement before spending a schema round-trip.
        where_clause("UPDATE", where, all_rows)
        columns = self._writable_columns(StatementKind.UPDATE, name, fields)
        if isinstance(columns, StatementResult):
            return columns
        stmt = build_update(
            name, fields, columns, where, bindings, all_rows=all_rows, quote=self._quote
        )
        return self.execute(stmt)

    def delete(
        self,
        table: str,
        where: str,
        bindings: Any = None,
        *,
        all_rows: bool = False,
    ) -> StatementResult:
        """
        Delete rows matching where. On success, value is the affected-row count.

        Raises:
            UnsafeStatementError: where is empty and all_rows is not set
        """
        stmt = build_delete(self.table(table), where, bindings, all_rows=all_rows, quote=self._quote)
        return self.execute(stmt)

    # -- field filter --------------------------------------------------------

    def filter_fields(self, table: str, fields: Mapping[str, Any]) -> list[str]:
        """
        Keys of fields that are real columns of table, in schema order.
        Empty when the column lookup fails.
        """
        columns, _ = self._filter(self.table(table), fields)
        return columns

    def _filter(
        self, name: str, fields: Mapping[str, Any]
    ) -> tuple[list[str], StatementResult]:
        stmt, key = introspection_statement(self.dialect, name, self._quote)
        result = self.execute(stmt)
        if not result.ok:
            return [], result
        columns = intersect_columns(column_names(result.rows or [], key), fields)
        logger.debug("Writable columns for %s: %s", name, columns)
        return columns, result

    def _writable_columns(
        self,
        kind: StatementKind,
        name: str,
        fields: Mapping[str, Any],
    ) -> list[str] | StatementResult:
        """
        Filtered columns, or a failed result when strict mode refuses the write.
        """
        columns, lookup = self._filter(name, fields)
        if not self.strict_schema or columns:
            return columns

        verb = kind.value.upper()
        if not lookup.ok:
            error = SchemaIntrospectionError(
                f"{verb} on {name} aborted: column lookup failed: {lookup.error}",
                sql=lookup.sql,
                bindings=lookup.bindings,
            )
            report = False  # the lookup failure itself was already reported
        else:
            error = SchemaIntrospectionError(
                f"{verb} on {name} aborted: none of {sorted(fields)} are columns of {name}",
                sql=lookup.sql,
                bindings=lookup.bindings,
            )
            report = True

        result = StatementResult.failure(kind, "", {}, str(error))
        logger.info("%s", error)
        if report:
            self.reporter.report(result.error or "")
        self._last_result = result
        return result

    # -- executor ------------------------------------------------------------

    def run(self, sql: str, bindings: Any = None) -> StatementResult:
        """
        Run a free-form statement.

        The result shape follows the leading verb: rows for SELECT, DESCRIBE
        and PRAGMA; affected-row count for UPDATE and DELETE; last insert id
        for INSERT. Other verbs are not executed and return a failed result.
        """
        sql = sql.strip()
        params = normalize_bindings(bindings)
        kind = classify_sql(sql)
        if kind is None:
            result = StatementResult.failure(
                None, sql, params, f"Unsupported statement type: {leading_keyword(sql) or '<empty>'}"
            )
            logger.info("%s", result.error)
            self.reporter.report(result.error or "", sql, params)
            self._observe("unknown", "unsupported", 0.0)
            self._last_result = result
            return result
        return self.execute(Statement(kind, sql, params))

    def execute(self, statement: Statement) -> StatementResult:
        """
        Execute a built statement; the kind it carries decides the result shape.
        """
        self._last_result = None
        start_time = time.monotonic()
        status = "success"

        try:
            result = self._execute(statement)
        except SQLAlchemyError as exc:
            status = "error"
            result = StatementResult.failure(
                statement.kind, statement.sql, statement.bindings, _error_message(exc)
            )
            logger.info(
                "%s statement failed: %s", statement.kind.value.upper(), result.error
            )
            self.reporter.report(result.error or "", statement.sql, statement.bindings)
        finally:
            self._observe(statement.kind.value, status, time.monotonic() - start_time)

        self._last_result = result
        return result

    def _execute(self, statement: Statement) -> StatementResult:
        with self.engine.begin() as conn:
            if isinstance(statement.bindings, tuple):
                cursor = conn.exec_driver_sql(statement.sql, statement.bindings)
            else:
                cursor = conn.execute(text(statement.sql), statement.bindings)
            try:
                return self._shape(conn, statement, cursor)
            finally:
                cursor.close()

    def _shape(
        self,
        conn: Connection,
        statement: Statement,
        cursor: CursorResult,
    ) -> StatementResult:
        kind = statement.kind
        if kind.returns_rows:
            # assignment PRAGMAs (e.g. "PRAGMA user_version = 3") produce no result set
            rows = [dict(row) for row in cursor.mappings()] if cursor.returns_rows else []
            return StatementResult(kind, statement.sql, statement.bindings, rows=rows)
        if kind.returns_rowcount:
            return StatementResult(
                kind, statement.sql, statement.bindings, rowcount=int(cursor.rowcount)
            )
        return StatementResult(
            kind,
            statement.sql,
            statement.bindings,
            last_insert_id=self._last_insert_id(conn, cursor),
        )

    def _last_insert_id(self, conn: Connection, cursor: CursorResult) -> Any:
        if self.engine.dialect.name != "postgresql":
            return cursor.lastrowid

        # psycopg drivers report no lastrowid; lastval() fails for tables
        # without a sequence, so it runs in a savepoint to keep the insert.
        try:
            with conn.begin_nested():
                return conn.execute(text("SELECT lastval()")).scalar_one()
        except DBAPIError as exc:
            logger.debug("lastval() unavailable after INSERT: %s", _error_message(exc))
            return None

    def _observe(self, kind: str, status: str, latency_s: float) -> None:
        # Metrics must not mask statement results.
        try:
            observe_statement(kind, status, latency_s)
        except Exception:
            logger.debug("Failed to record statement metrics", exc_info=True)
