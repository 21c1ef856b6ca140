"""Record annotation surface and metadata extraction.

Records are dataclasses.  The table name is attached once at the type
level and every mapped field carries its storage column name; exactly one
field is marked as the primary key::

    @table("people")
    class Person:
        id: int = column("id", primary=True)
        name: str = column("name")
        age: int = column("age")

``@table`` gives every ``column()`` without an explicit default the zero
value of its type and turns the class into a dataclass, so ``Person()`` is
always a valid empty template.  A class that is already a dataclass can
declare ``__tablename__`` itself instead of using the decorator.

The declared shape is read once per type into a :class:`Schema` and cached;
:func:`extract` and :func:`populate` then only walk the cached column
specs.  A malformed declaration raises :class:`ConfigurationError` the first
time the type is used.  Records must be mutable (not ``frozen``), and every
``__init__`` argument without a default must be a mapped column so rows can
be loaded back into new records.
"""

from __future__ import annotations

import dataclasses
import inspect
import typing
import weakref
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from rebecca.errors import ConfigurationError
from rebecca.field import Field, FieldType

T = TypeVar("T")

COLUMN_KEY = "rebecca"
PRIMARY_KEY = "rebecca_primary"
TABLENAME_ATTR = "__tablename__"


def column(
    name: str,
    *,
    primary: bool = False,
    default: Any = dataclasses.MISSING,
    default_factory: Callable[[], Any] | Any = dataclasses.MISSING,
    **kwargs: Any,
) -> Any:
    """Declare a mapped field stored in column ``name``.

    Returns a ``dataclasses.field`` carrying the storage name and the
    primary-key marker in its metadata.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[COLUMN_KEY] = name
    metadata[PRIMARY_KEY] = primary
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **kwargs,
    )


def table(name: str) -> Callable[[type[T]], type[T]]:
    """Class decorator attaching the table name to a record type."""

    def decorate(cls: type[T]) -> type[T]:
        setattr(cls, TABLENAME_ATTR, name)
        if not dataclasses.is_dataclass(cls):
            _fill_zero_defaults(cls)
            cls = dataclasses.dataclass(cls)
        return cls

    return decorate


def _fill_zero_defaults(cls: type) -> None:
    hints = _type_hints(cls)
    for attribute in inspect.get_annotations(cls):
        declared = cls.__dict__.get(attribute)
        if not isinstance(declared, dataclasses.Field) or COLUMN_KEY not in declared.metadata:
            continue
        if declared.default is dataclasses.MISSING and declared.default_factory is dataclasses.MISSING:
            declared.default = FieldType.from_annotation(hints[attribute]).zero()


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except NameError as e:
        raise ConfigurationError(
            f"Cannot resolve field annotations of {cls.__name__}: {e}",
            cause=e,
        ) from e


# =============================================================================
# Schema
# =============================================================================


@dataclass(frozen=True)
class ColumnSpec:
    """One mapped field: attribute name, storage name, type and accessors."""

    attribute: str
    name: str
    type: FieldType
    primary: bool = False
    init: bool = True

    def get(self, record: Any) -> Any:
        return getattr(record, self.attribute)

    def set(self, record: Any, value: Any) -> None:
        setattr(record, self.attribute, value)


@dataclass(frozen=True)
class Schema:
    """Cached description of a record type's declared shape."""

    table_name: str
    columns: tuple[ColumnSpec, ...]
    primary_index: int
    by_name: dict[str, ColumnSpec] = dataclasses.field(compare=False, repr=False)

    @property
    def primary_key(self) -> ColumnSpec:
        return self.columns[self.primary_index]

    def column(self, name: str) -> ColumnSpec | None:
        """Column spec for a storage name, or ``None`` if not mapped."""
        return self.by_name.get(name)


@dataclass(frozen=True)
class RecordMetadata:
    """Table name, ordered field descriptors and primary-key index of a record."""

    table_name: str
    fields: tuple[Field, ...]
    primary_index: int

    @property
    def primary_key(self) -> Field:
        return self.fields[self.primary_index]


# Keyed weakly so record types defined in functions can still be collected.
_SCHEMAS: weakref.WeakKeyDictionary[type, Schema] = weakref.WeakKeyDictionary()


def schema_for(record: Any) -> Schema:
    """Schema of a record instance or record type."""
    cls = record if isinstance(record, type) else type(record)
    schema = _SCHEMAS.get(cls)
    if schema is None:
        schema = _SCHEMAS[cls] = _build_schema(cls)
    return schema


def _required(declared: dataclasses.Field) -> bool:
    return (
        declared.init
        and declared.default is dataclasses.MISSING
        and declared.default_factory is dataclasses.MISSING
    )


def _build_schema(cls: type) -> Schema:
    table_name = getattr(cls, TABLENAME_ATTR, None)
    if not table_name:
        raise ConfigurationError(
            f"{cls.__name__} has no table name; decorate it with @table(...) "
            f"or set {TABLENAME_ATTR}"
        )
    if not dataclasses.is_dataclass(cls):
        raise ConfigurationError(f"{cls.__name__} is not a dataclass").with_context(
            table=table_name
        )
    # save() writes the assigned key back and get() populates in place
    if cls.__dataclass_params__.frozen:
        raise ConfigurationError(
            f"{cls.__name__} is a frozen dataclass; records must be mutable"
        ).with_context(table=table_name)

    hints = _type_hints(cls)
    columns: list[ColumnSpec] = []
    for declared in dataclasses.fields(cls):
        name = declared.metadata.get(COLUMN_KEY)
        if name is None:
            if _required(declared):
                raise ConfigurationError(
                    f"{cls.__name__}.{declared.name} is required by __init__ but not mapped "
                    f"to a column, so rows cannot be loaded into {cls.__name__}"
                ).with_context(table=table_name)
            continue
        columns.append(
            ColumnSpec(
                attribute=declared.name,
                name=name,
                type=FieldType.from_annotation(hints[declared.name]),
                primary=bool(declared.metadata.get(PRIMARY_KEY, False)),
                init=declared.init,
            )
        )

    if not columns:
        raise ConfigurationError(f"{cls.__name__} has no mapped columns").with_context(
            table=table_name
        )

    by_name: dict[str, ColumnSpec] = {}
    for spec in columns:
        if spec.name in by_name:
            raise ConfigurationError(
                f"{cls.__name__} maps column '{spec.name}' more than once"
            ).with_context(table=table_name, column=spec.name)
        by_name[spec.name] = spec

    primary = [i for i, spec in enumerate(columns) if spec.primary]
    if len(primary) != 1:
        raise ConfigurationError(
            f"{cls.__name__} must declare exactly one primary key column, found {len(primary)}"
        ).with_context(table=table_name)

    return Schema(
        table_name=table_name,
        columns=tuple(columns),
        primary_index=primary[0],
        by_name=by_name,
    )


# =============================================================================
# Record <-> descriptors
# =============================================================================


def extract(record: Any) -> RecordMetadata:
    """Read a record's metadata with fresh descriptors of its current values."""
    schema = schema_for(record)
    fields = tuple(Field(spec.name, spec.type, spec.get(record)) for spec in schema.columns)
    return RecordMetadata(
        table_name=schema.table_name,
        fields=fields,
        primary_index=schema.primary_index,
    )


def template(record_type: type) -> RecordMetadata:
    """Metadata of an empty record of ``record_type`` (all zero values).

    Built from the schema alone; ``record_type`` is never instantiated.
    """
    schema = schema_for(record_type)
    return RecordMetadata(
        table_name=schema.table_name,
        fields=tuple(Field(spec.name, spec.type, spec.type.zero()) for spec in schema.columns),
        primary_index=schema.primary_index,
    )


def populate(record: T, fields: Sequence[Field]) -> T:
    """Assign descriptor values to the record fields with matching storage names.

    Descriptors without a matching field are ignored.
    """
    schema = schema_for(record)
    for f in fields:
        spec = schema.column(f.name)
        if spec is not None:
            spec.set(record, f.value)
    return record


def build(record_type: type[T], fields: Sequence[Field]) -> T:
    """New record of ``record_type`` holding the values of ``fields``.

    Columns accepted by ``__init__`` are passed to it (zero values for any
    not in ``fields``); ``init=False`` columns are assigned afterwards.
    """
    schema = schema_for(record_type)
    values = {f.name: f.value for f in fields}
    kwargs = {
        spec.attribute: values.get(spec.name, spec.type.zero())
        for spec in schema.columns
        if spec.init
    }
    record = record_type(**kwargs)
    return populate(record, [f for f in fields if not _init_column(schema, f.name)])


def _init_column(schema: Schema, name: str) -> bool:
    spec = schema.column(name)
    return spec is not None and spec.init


__all__ = [
    "column",
    "table",
    "ColumnSpec",
    "Schema",
    "RecordMetadata",
    "schema_for",
    "extract",
    "template",
    "populate",
    "build",
]
