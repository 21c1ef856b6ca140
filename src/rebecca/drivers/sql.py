"""Relational driver: CRUD over any DB-API database through an adapter.

Statements are built from the table name and descriptor names only.  Every
caller value travels as a bound parameter:

* ``create`` binds the non-key columns as parameters 1..n;
* ``update`` binds the key as parameter 1 and the other columns from 2;
* ``get`` and ``remove`` bind the key as parameter 1;
* ``where`` / ``first`` bind exactly the clause's own arguments.

With numbered placeholders (SQLite ``?1``) the parameter indices appear in
the SQL text; with anonymous ones (psycopg2 ``%s``) parameters are sent in
the order their placeholders appear.

Rows are decoded column by column through :meth:`FieldType.decode` into
fresh descriptors.  Multi-row fetches keep going past a row that fails to
decode and report the last :class:`ScanError` next to the rows that did.

Example:
    >>> driver = SQLDriver(SQLiteAdapter("people.db"))
    >>> driver.create_table(Person)
    >>> setup_driver(driver)
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import closing
from typing import Any

from rebecca.adapters.base import DatabaseAdapter
from rebecca.context import Context
from rebecca.dialect import Dialect
from rebecca.errors import NotFoundError, QueryError, RebeccaError, ScanError, WriteError
from rebecca.field import ColumnType, Field, field_names, without
from rebecca.logging import get_logger
from rebecca.metadata import schema_for
from rebecca.protocols import Cursor

from .base import Driver, Row, RowSet

logger = get_logger(__name__)


class SQLDriver(Driver):
    """Driver issuing parameterized SQL through a :class:`DatabaseAdapter`."""

    def __init__(self, adapter: DatabaseAdapter):
        self._adapter = adapter

    @property
    def adapter(self) -> DatabaseAdapter:
        return self._adapter

    @property
    def dialect(self) -> Dialect:
        return self._adapter.dialect

    # -- Driver contract ---------------------------------------------------

    def get(self, table: str, fields: Sequence[Field], id: Field) -> Row:
        sql = (
            f"SELECT {_names(fields)} FROM {table} "
            f"WHERE {id.name} = {self.dialect.placeholder(0)}"
            f"{self.dialect.limit_clause(1, 0)}"
        )
        row = self._read_row(fields, sql, [self.dialect.bind(id.value)])
        if row is None:
            raise NotFoundError(
                f"No row in {table} with {id.name} = {id.value!r}"
            ).with_context(table=table, operation="get", query=sql)
        return row

    def create(self, table: str, fields: Sequence[Field], id: Field) -> Field:
        columns = without(fields, id)
        if columns:
            sql = (
                f"INSERT INTO {table} ({_names(columns)}) "
                f"VALUES ({self.dialect.placeholders(len(columns))})"
            )
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES"
        sql += self.dialect.returning(id.name)
        params = [self.dialect.bind(f.value) for f in columns]

        try:
            with self._adapter.transaction() as conn, closing(conn.cursor()) as cursor:
                self._execute(cursor, sql, params)
                raw = cursor.fetchone()
        except RebeccaError:
            raise
        except Exception as e:
            raise WriteError(
                f"Unable to insert into {table} - {e}", cause=e
            ).with_context(table=table, operation="create", query=sql) from e

        if raw is None:
            raise WriteError(
                f"Unable to insert into {table} - no key returned"
            ).with_context(table=table, operation="create", query=sql)

        key = id.with_value(self._decode(id, raw[0], sql))
        logger.debug("row_inserted", table=table, key=key.value)
        return key

    def update(self, table: str, fields: Sequence[Field], id: Field) -> None:
        columns = without(fields, id)
        if not columns:
            return

        # key is parameter 1, columns follow from parameter 2
        assignments = ", ".join(
            f"{f.name} = {self.dialect.placeholder(i + 1)}" for i, f in enumerate(columns)
        )
        sql = f"UPDATE {table} SET {assignments} WHERE {id.name} = {self.dialect.placeholder(0)}"
        params = [self.dialect.bind(id.value)] + [self.dialect.bind(f.value) for f in columns]
        if not self.dialect.numbered:
            params = params[1:] + params[:1]

        self._write(sql, params, table=table, operation="update", key=id.value)

    def all(self, table: str, fields: Sequence[Field], context: Context) -> RowSet:
        sql = f"SELECT {_names(fields)} FROM {table}{self._context_clause(context)}"
        return self._read_rows(fields, sql, [])

    def where(
        self,
        table: str,
        fields: Sequence[Field],
        context: Context,
        where: str,
        *args: Any,
    ) -> RowSet:
        sql = (
            f"SELECT {_names(fields)} FROM {table} "
            f"WHERE {where}{self._context_clause(context)}"
        )
        return self._read_rows(fields, sql, [self.dialect.bind(a) for a in args])

    def first(
        self,
        table: str,
        fields: Sequence[Field],
        context: Context,
        where: str,
        *args: Any,
    ) -> Row:
        first_context = context.set_limit(1)
        sql = (
            f"SELECT {_names(fields)} FROM {table} "
            f"WHERE {where}{self._context_clause(first_context)}"
        )
        row = self._read_row(fields, sql, [self.dialect.bind(a) for a in args])
        if row is None:
            raise NotFoundError(
                f"No row in {table} matches {where}"
            ).with_context(table=table, operation="first", query=sql)
        return row

    def remove(self, table: str, id: Field) -> None:
        sql = f"DELETE FROM {table} WHERE {id.name} = {self.dialect.placeholder(0)}"
        self._write(sql, [self.dialect.bind(id.value)], table=table, operation="remove", key=id.value)

    # -- Schema helpers ----------------------------------------------------

    def create_table(self, record_type: type) -> None:
        """``CREATE TABLE IF NOT EXISTS`` for a record type's declared columns."""
        schema = schema_for(record_type)
        definitions = []
        for spec in schema.columns:
            if spec.primary:
                if spec.type.column_type is ColumnType.INTEGER:
                    definitions.append(f"{spec.name} {self.dialect.auto_increment()}")
                else:
                    definitions.append(f"{spec.name} {self.dialect.column_type(spec.type)} PRIMARY KEY")
                continue
            null = "" if spec.type.nullable else " NOT NULL"
            definitions.append(f"{spec.name} {self.dialect.column_type(spec.type)}{null}")

        sql = f"CREATE TABLE IF NOT EXISTS {schema.table_name} ({', '.join(definitions)})"
        self._write(sql, [], table=schema.table_name, operation="create_table")

    def drop_table(self, table: str) -> None:
        self._write(f"DROP TABLE IF EXISTS {table}", [], table=table, operation="drop_table")

    # -- Internals ---------------------------------------------------------

    def _context_clause(self, context: Context) -> str:
        clause = ""

        if context.group:
            clause += f" GROUP BY {context.group}"

        if context.order:
            clause += f" ORDER BY {context.order}"

        return clause + self.dialect.limit_clause(context.limit, context.skip)

    def _execute(self, cursor: Cursor, sql: str, params: Sequence[Any]) -> None:
        logger.debug("sql_execute", sql=sql, param_count=len(params))
        cursor.execute(sql, tuple(params))

    def _write(self, sql: str, params: Sequence[Any], *, table: str, operation: str, key: Any = None) -> None:
        try:
            with self._adapter.transaction() as conn, closing(conn.cursor()) as cursor:
                self._execute(cursor, sql, params)
        except RebeccaError:
            raise
        except Exception as e:
            target = f"record with primary key = {key!r} in " if key is not None else ""
            raise WriteError(
                f"Unable to {operation} {target}table {table} - {e}", cause=e
            ).with_context(table=table, operation=operation, query=sql) from e

    def _read_row(self, fields: Sequence[Field], sql: str, params: Sequence[Any]) -> Row | None:
        try:
            with self._adapter.transaction() as conn, closing(conn.cursor()) as cursor:
                self._execute(cursor, sql, params)
                raw = cursor.fetchone()
        except RebeccaError:
            raise
        except Exception as e:
            raise QueryError(f"Unable to execute query '{sql}' - {e}", cause=e).with_context(
                query=sql
            ) from e

        if raw is None:
            return None
        return self._scan(fields, raw, sql)

    def _read_rows(self, fields: Sequence[Field], sql: str, params: Sequence[Any]) -> RowSet:
        result = RowSet()
        try:
            with self._adapter.transaction() as conn, closing(conn.cursor()) as cursor:
                self._execute(cursor, sql, params)
                for raw in cursor:
                    try:
                        result.rows.append(self._scan(fields, raw, sql))
                    except ScanError as e:
                        logger.warning("row_scan_failed", sql=sql, error=e)
                        result.error = e
        except RebeccaError:
            raise
        except Exception as e:
            raise QueryError(f"Unable to execute query '{sql}' - {e}", cause=e).with_context(
                query=sql
            ) from e
        return result

    def _scan(self, fields: Sequence[Field], raw: Sequence[Any], sql: str) -> Row:
        if len(raw) != len(fields):
            raise ScanError(
                f"Unable to scan row - query = {sql} - expected {len(fields)} columns, got {len(raw)}"
            ).with_context(query=sql)
        return [f.with_value(self._decode(f, value, sql)) for f, value in zip(fields, raw)]

    def _decode(self, f: Field, raw: Any, sql: str) -> Any:
        try:
            return f.type.decode(raw)
        except ScanError as e:
            raise ScanError(
                f"Unable to scan row - query = {sql} - column {f.name}: {e}", cause=e
            ).with_context(column=f.name, query=sql) from e


def _names(fields: Sequence[Field]) -> str:
    return ", ".join(field_names(fields))


__all__ = [
    "SQLDriver",
]
