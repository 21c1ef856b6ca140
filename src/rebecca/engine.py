"""Engine façade: records in, records out.

The :class:`Engine` converts records to field descriptors through the cached
schema, dispatches to its driver and maps the returned rows back onto
records.  It holds no state besides the driver, so tests build one per
case::

    engine = Engine(MemoryDriver())
    person = Person(name="John", age=9)
    engine.save(person)            # create: key was zero, now assigned
    person.age = 10
    engine.save(person)            # update: key is non-zero

The module-level functions (:func:`save`, :func:`get`, ...) do the same
against the process-wide driver installed with
:func:`rebecca.drivers.setup_driver`.

Errors from the driver propagate unchanged apart from the ``table`` and
``operation`` context the engine adds.  A multi-row fetch in which some
rows failed to decode raises the last :class:`ScanError` with the records
that did decode attached as ``error.records``.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from rebecca.context import DEFAULT_CONTEXT, Context
from rebecca.drivers.base import Driver, Row, RowSet
from rebecca.drivers.registry import current_driver
from rebecca.errors import RebeccaError
from rebecca.logging import get_logger
from rebecca.metadata import RecordMetadata, build, extract, populate, template

T = TypeVar("T")

logger = get_logger(__name__)


def _metadata(record: Any) -> RecordMetadata:
    return template(record) if isinstance(record, type) else extract(record)


def _load(record: Any, row: Row) -> Any:
    """New record built from ``row`` for a type; an instance is populated in place."""
    return build(record, row) if isinstance(record, type) else populate(record, row)


@contextmanager
def _operation(table: str, operation: str) -> Iterator[None]:
    try:
        yield
    except RebeccaError as e:
        e.with_context(table=table, operation=operation)
        raise


class Engine:
    """Record-level CRUD over one :class:`Driver`."""

    def __init__(self, driver: Driver):
        self._driver = driver

    @property
    def driver(self) -> Driver:
        return self._driver

    def save(self, record: T) -> T:
        """Create ``record`` if its primary key is zero, update it otherwise.

        On create the key assigned by the driver is written back into the
        record.
        """
        meta = extract(record)
        key = meta.primary_key

        if key.is_zero:
            with _operation(meta.table_name, "create"):
                new_key = self._driver.create(meta.table_name, meta.fields, key)
            populate(record, [new_key])
            logger.debug("record_created", table=meta.table_name, key=new_key.value)
        else:
            with _operation(meta.table_name, "update"):
                self._driver.update(meta.table_name, meta.fields, key)
            logger.debug("record_updated", table=meta.table_name, key=key.value)
        return record

    def get(self, record: T | type[T], id: Any) -> T:
        """Load the row with primary key ``id``.

        Given a record instance it is populated in place; given a record
        type a new instance is created.
        """
        meta = _metadata(record)
        with _operation(meta.table_name, "get"):
            key = meta.primary_key.with_value(id)
            row = self._driver.get(meta.table_name, meta.fields, key)
        return _load(record, row)

    def all(self, record_type: type[T], context: Context | None = None) -> list[T]:
        """Every row of the record's table, in the order the driver yields them."""
        meta = template(record_type)
        with _operation(meta.table_name, "all"):
            rows = self._driver.all(meta.table_name, meta.fields, context or DEFAULT_CONTEXT)
            return self._records(record_type, rows)

    def where(
        self,
        record_type: type[T],
        where: str,
        *args: Any,
        context: Context | None = None,
    ) -> list[T]:
        """Rows matching ``where``; the clause syntax belongs to the driver."""
        meta = template(record_type)
        with _operation(meta.table_name, "where"):
            rows = self._driver.where(
                meta.table_name, meta.fields, context or DEFAULT_CONTEXT, where, *args
            )
            return self._records(record_type, rows)

    def first(
        self,
        record: T | type[T],
        where: str,
        *args: Any,
        context: Context | None = None,
    ) -> T:
        """First row matching ``where``. The context limit is forced to 1.

        Raises:
            NotFoundError: No row matched.
        """
        meta = _metadata(record)
        first_context = (context or DEFAULT_CONTEXT).set_limit(1)
        with _operation(meta.table_name, "first"):
            row = self._driver.first(meta.table_name, meta.fields, first_context, where, *args)
        return _load(record, row)

    def remove(self, record: Any) -> None:
        """Delete the row identified by the record's primary key."""
        meta = extract(record)
        with _operation(meta.table_name, "remove"):
            self._driver.remove(meta.table_name, meta.primary_key)
        logger.debug("record_removed", table=meta.table_name, key=meta.primary_key.value)

    def _records(self, record_type: type[T], rows: RowSet) -> list[T]:
        records = [build(record_type, row) for row in rows]
        if rows.error is not None:
            rows.error.records = records
            raise rows.error
        return records

    def __repr__(self) -> str:
        return f"Engine({self._driver!r})"


# =============================================================================
# Process-wide convenience API
# =============================================================================


def save(record: T) -> T:
    """:meth:`Engine.save` on the installed driver."""
    return Engine(current_driver()).save(record)


def get(record: T | type[T], id: Any) -> T:
    """:meth:`Engine.get` on the installed driver."""
    return Engine(current_driver()).get(record, id)


def all(record_type: type[T], context: Context | None = None) -> list[T]:  # noqa: A001
    """:meth:`Engine.all` on the installed driver."""
    return Engine(current_driver()).all(record_type, context)


def where(
    record_type: type[T],
    where: str,
    *args: Any,
    context: Context | None = None,
) -> list[T]:
    """:meth:`Engine.where` on the installed driver."""
    return Engine(current_driver()).where(record_type, where, *args, context=context)


def first(
    record: T | type[T],
    where: str,
    *args: Any,
    context: Context | None = None,
) -> T:
    """:meth:`Engine.first` on the installed driver."""
    return Engine(current_driver()).first(record, where, *args, context=context)


def remove(record: Any) -> None:
    """:meth:`Engine.remove` on the installed driver."""
    Engine(current_driver()).remove(record)


__all__ = [
    "Engine",
    "save",
    "get",
    "all",
    "where",
    "first",
    "remove",
]
