"""Field descriptors and the closed set of column types.

A :class:`Field` is the runtime ``(name, type, value)`` triple that stands
for one mapped column.  Drivers only ever see fields, never the record type
they came from.

Column values are typed through :class:`FieldType`, a tagged variant over
:class:`ColumnType` plus a nullable flag.  ``FieldType.decode`` is the
decode contract every result-row decoder uses: it turns a raw backend value
(``1`` for ``True`` in SQLite, ISO text for timestamps, ``Decimal`` from
numeric columns) into the declared Python type.

Examples:
    >>> age = Field("age", FieldType(ColumnType.INTEGER), 31)
    >>> age.with_value(32).value
    32
    >>> FieldType(ColumnType.BOOLEAN).decode(1)
    True
    >>> FieldType.from_annotation(int | None)
    FieldType(column_type=<ColumnType.INTEGER: 'integer'>, nullable=True)
"""

from __future__ import annotations

import types
import typing
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from rebecca.errors import ConfigurationError, FieldTypeError, ScanError


class ColumnType(str, Enum):
    """Supported column value types."""

    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"

    @property
    def python_type(self) -> type:
        return _PYTHON_TYPES[self]


_PYTHON_TYPES: dict[ColumnType, type] = {
    ColumnType.INTEGER: int,
    ColumnType.FLOAT: float,
    ColumnType.TEXT: str,
    ColumnType.BOOLEAN: bool,
    ColumnType.TIMESTAMP: datetime,
}

_ANNOTATIONS: dict[Any, ColumnType] = {py: ct for ct, py in _PYTHON_TYPES.items()}

_ZERO_VALUES: dict[ColumnType, Any] = {
    ColumnType.INTEGER: 0,
    ColumnType.FLOAT: 0.0,
    ColumnType.TEXT: "",
    ColumnType.BOOLEAN: False,
    ColumnType.TIMESTAMP: datetime.min,
}


@dataclass(frozen=True)
class FieldType:
    """Declared runtime type of a column: a :class:`ColumnType` and nullability."""

    column_type: ColumnType
    nullable: bool = False

    @classmethod
    def from_annotation(cls, annotation: Any) -> FieldType:
        """Map a Python annotation (``int``, ``str | None``, ...) to a FieldType.

        Raises:
            ConfigurationError: If the annotation is not a supported column type.
        """
        origin = typing.get_origin(annotation)
        if origin is typing.Union or origin is types.UnionType:
            members = [a for a in typing.get_args(annotation) if a is not type(None)]
            if len(members) == 1 and len(typing.get_args(annotation)) == 2:
                return replace(cls.from_annotation(members[0]), nullable=True)
            raise ConfigurationError(f"Unsupported column annotation: {annotation!r}")

        column_type = _ANNOTATIONS.get(annotation)
        if column_type is None:
            raise ConfigurationError(f"Unsupported column annotation: {annotation!r}")
        return cls(column_type)

    def zero(self) -> Any:
        """Runtime zero value: the value of a field the caller never set."""
        if self.nullable:
            return None
        return _ZERO_VALUES[self.column_type]

    def is_zero(self, value: Any) -> bool:
        if value is None:
            return self.nullable
        if self.nullable:
            return False
        return value == _ZERO_VALUES[self.column_type]

    def accepts(self, value: Any) -> bool:
        """Whether ``value`` is assignable to this type."""
        if value is None:
            return self.nullable

        match self.column_type:
            case ColumnType.INTEGER:
                return isinstance(value, int) and not isinstance(value, bool)
            case ColumnType.FLOAT:
                return isinstance(value, (int, float)) and not isinstance(value, bool)
            case ColumnType.TEXT:
                return isinstance(value, str)
            case ColumnType.BOOLEAN:
                return isinstance(value, bool)
            case ColumnType.TIMESTAMP:
                return isinstance(value, datetime)
        return False

    def decode(self, raw: Any) -> Any:
        """Decode a raw backend value into this type.

        Raises:
            ScanError: If ``raw`` cannot represent a value of this type.
        """
        if raw is None:
            if self.nullable:
                return None
            raise ScanError(f"NULL is not a valid {self.column_type.value} value")

        try:
            value = _DECODERS[self.column_type](raw)
        except (TypeError, ValueError, OverflowError) as e:
            raise ScanError(
                f"Cannot decode {raw!r} as {self.column_type.value}: {e}",
                cause=e,
            ) from e
        return value

    def __str__(self) -> str:
        suffix = " NULL" if self.nullable else ""
        return f"{self.column_type.value}{suffix}"


def _decode_integer(raw: Any) -> int:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, (Decimal, float)) and raw == int(raw):
        return int(raw)
    raise TypeError(f"expected an integral number, got {type(raw).__name__}")


def _decode_float(raw: Any) -> float:
    if isinstance(raw, (int, float, Decimal)) and not isinstance(raw, bool):
        return float(raw)
    raise TypeError(f"expected a number, got {type(raw).__name__}")


def _decode_text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    raise TypeError(f"expected text, got {type(raw).__name__}")


def _decode_boolean(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    raise TypeError(f"expected a boolean or 0/1, got {raw!r}")


def _decode_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str):
        return datetime.fromisoformat(raw)
    raise TypeError(f"expected a timestamp, got {type(raw).__name__}")


_DECODERS = {
    ColumnType.INTEGER: _decode_integer,
    ColumnType.FLOAT: _decode_float,
    ColumnType.TEXT: _decode_text,
    ColumnType.BOOLEAN: _decode_boolean,
    ColumnType.TIMESTAMP: _decode_timestamp,
}


@dataclass(frozen=True)
class Field:
    """One mapped column: storage name, declared type and current value.

    Fields are immutable; :meth:`with_value` returns a copy so the caller's
    record and a driver's working set never alias.
    """

    name: str
    type: FieldType
    value: Any

    def __post_init__(self) -> None:
        if not self.type.accepts(self.value):
            raise FieldTypeError(
                f"Value {self.value!r} is not assignable to column "
                f"'{self.name}' of type {self.type}"
            ).with_context(column=self.name)

    def with_value(self, value: Any) -> Field:
        return replace(self, value=value)

    @property
    def is_zero(self) -> bool:
        return self.type.is_zero(self.value)


def field_names(fields: typing.Sequence[Field]) -> list[str]:
    return [f.name for f in fields]


def without(fields: typing.Sequence[Field], key: Field) -> list[Field]:
    """All fields except the one sharing ``key``'s storage name."""
    return [f for f in fields if f.name != key.name]


__all__ = [
    "ColumnType",
    "FieldType",
    "Field",
    "field_names",
    "without",
]
