"""In-memory driver for tests and prototyping.

Rows live in per-table lists in insertion order.  Keys come from a
per-table counter: integer keys are ``1, 2, 3, ...`` and text keys are
``"1", "2", "3", ...``.

``where`` and ``first`` do not parse clauses.  Each clause string is
registered up front with a predicate and matched by exact string
equality::

    driver = MemoryDriver()
    driver.register_where(
        "age < ?1",
        lambda row, age: value_of(row, "age") < age,
    )

The predicate receives the stored row's descriptors followed by the
clause arguments.  Skip and limit from the context are honoured; order
and group are ignored, rows always come back in insertion order.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from itertools import count
from typing import Any

from rebecca.context import Context
from rebecca.errors import NotFoundError, QueryError, RebeccaError, ScanError, WriteError
from rebecca.field import ColumnType, Field
from rebecca.logging import get_logger

from .base import Driver, Row, RowSet

logger = get_logger(__name__)

Predicate = Callable[..., bool]


def value_of(row: Sequence[Field], name: str) -> Any:
    """Value of the descriptor named ``name`` in ``row``.

    Raises:
        KeyError: If the row has no such column.
    """
    for f in row:
        if f.name == name:
            return f.value
    raise KeyError(name)


class MemoryDriver(Driver):
    """Driver keeping every table in process memory."""

    def __init__(self) -> None:
        self._tables: dict[str, list[Row]] = {}
        self._counters: dict[str, count] = {}
        self._wheres: dict[str, Predicate] = {}

    def register_where(self, where: str, predicate: Predicate) -> None:
        """Register the predicate evaluated for the exact clause ``where``."""
        self._wheres[where] = predicate

    def rows(self, table: str) -> list[Row]:
        """Copy of the stored rows of ``table``, in insertion order."""
        return [list(row) for row in self._tables.get(table, [])]

    def clear(self) -> None:
        self._tables.clear()
        self._counters.clear()

    # -- Driver contract ---------------------------------------------------

    def get(self, table: str, fields: Sequence[Field], id: Field) -> Row:
        index = self._find(table, id)
        if index is None:
            raise NotFoundError(
                f"No row in {table} with {id.name} = {id.value!r}"
            ).with_context(table=table, operation="get")
        return _project(self._tables[table][index], fields)

    def create(self, table: str, fields: Sequence[Field], id: Field) -> Field:
        key = id.with_value(self._next_key(table, id))
        row = [key if f.name == id.name else f for f in fields]
        self._tables.setdefault(table, []).append(row)
        logger.debug("row_inserted", table=table, key=key.value)
        return key

    def update(self, table: str, fields: Sequence[Field], id: Field) -> None:
        index = self._find(table, id)
        if index is None:
            logger.debug("update_matched_nothing", table=table, key=id.value)
            return

        stored = self._tables[table][index]
        values = {f.name: f for f in fields if f.name != id.name}
        self._tables[table][index] = [values.get(f.name, f) for f in stored]

    def all(self, table: str, fields: Sequence[Field], context: Context) -> RowSet:
        return self._select(table, fields, context, self._tables.get(table, []))

    def where(
        self,
        table: str,
        fields: Sequence[Field],
        context: Context,
        where: str,
        *args: Any,
    ) -> RowSet:
        matched = self._match(table, where, args)
        return self._select(table, fields, context, matched)

    def first(
        self,
        table: str,
        fields: Sequence[Field],
        context: Context,
        where: str,
        *args: Any,
    ) -> Row:
        result = self.where(table, fields, context.set_limit(1), where, *args)
        if result.error is not None:
            raise result.error
        if not result.rows:
            raise NotFoundError(f"No row in {table} matches {where}").with_context(
                table=table, operation="first", query=where
            )
        return result.rows[0]

    def remove(self, table: str, id: Field) -> None:
        index = self._find(table, id)
        if index is not None:
            del self._tables[table][index]

    # -- Internals ---------------------------------------------------------

    def _next_key(self, table: str, id: Field) -> Any:
        n = next(self._counters.setdefault(table, count(1)))
        match id.type.column_type:
            case ColumnType.INTEGER:
                return n
            case ColumnType.TEXT:
                return str(n)
        raise WriteError(
            f"Cannot generate a {id.type.column_type.value} key for {table}"
        ).with_context(table=table, operation="create", column=id.name)

    def _find(self, table: str, id: Field) -> int | None:
        for i, row in enumerate(self._tables.get(table, [])):
            for f in row:
                if f.name == id.name and f.value == id.value:
                    return i
        return None

    def _match(self, table: str, where: str, args: Sequence[Any]) -> list[Row]:
        predicate = self._wheres.get(where)
        if predicate is None:
            raise QueryError(f"No predicate registered for clause '{where}'").with_context(
                table=table, operation="where", query=where
            )

        matched = []
        for row in self._tables.get(table, []):
            try:
                ok = predicate(list(row), *args)
            except RebeccaError:
                raise
            except Exception as e:
                raise QueryError(
                    f"Predicate for clause '{where}' failed - {e}", cause=e
                ).with_context(table=table, operation="where", query=where) from e
            if ok:
                matched.append(row)
        return matched

    def _select(
        self,
        table: str,
        fields: Sequence[Field],
        context: Context,
        rows: Sequence[Row],
    ) -> RowSet:
        start = max(context.skip, 0)
        stop = start + context.limit if context.limit > 0 else None

        result = RowSet()
        for row in rows[start:stop]:
            try:
                result.rows.append(_project(row, fields))
            except ScanError as e:
                logger.warning("row_scan_failed", table=table, error=e)
                result.error = e
        return result


def _project(row: Sequence[Field], fields: Sequence[Field]) -> Row:
    stored = {f.name: f for f in row}
    projected = []
    for f in fields:
        if f.name not in stored:
            raise ScanError(f"Stored row has no column {f.name}").with_context(column=f.name)
        projected.append(f.with_value(f.type.decode(stored[f.name].value)))
    return projected


__all__ = [
    "MemoryDriver",
    "Predicate",
    "value_of",
]
