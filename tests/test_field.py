"""Tests for ``rebecca.field``: column types, decoding and descriptors."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytest

from rebecca.errors import ConfigurationError, FieldTypeError, ScanError
from rebecca.field import ColumnType, Field, FieldType, field_names, without

INTEGER = FieldType(ColumnType.INTEGER)
FLOAT = FieldType(ColumnType.FLOAT)
TEXT = FieldType(ColumnType.TEXT)
BOOLEAN = FieldType(ColumnType.BOOLEAN)
TIMESTAMP = FieldType(ColumnType.TIMESTAMP)


class TestFromAnnotation:
    @pytest.mark.parametrize(
        "annotation,column_type",
        [
            (int, ColumnType.INTEGER),
            (float, ColumnType.FLOAT),
            (str, ColumnType.TEXT),
            (bool, ColumnType.BOOLEAN),
            (datetime, ColumnType.TIMESTAMP),
        ],
    )
    def test_plain_types(self, annotation, column_type):
        assert FieldType.from_annotation(annotation) == FieldType(column_type)

    def test_optional(self):
        assert FieldType.from_annotation(Optional[int]) == FieldType(ColumnType.INTEGER, nullable=True)

    def test_union_with_none(self):
        assert FieldType.from_annotation(str | None) == FieldType(ColumnType.TEXT, nullable=True)

    @pytest.mark.parametrize("annotation", [list, dict[str, int], int | str, bytes])
    def test_unsupported(self, annotation):
        with pytest.raises(ConfigurationError):
            FieldType.from_annotation(annotation)


class TestZero:
    @pytest.mark.parametrize(
        "field_type,zero",
        [
            (INTEGER, 0),
            (FLOAT, 0.0),
            (TEXT, ""),
            (BOOLEAN, False),
            (TIMESTAMP, datetime.min),
            (FieldType(ColumnType.INTEGER, nullable=True), None),
        ],
    )
    def test_zero_values(self, field_type, zero):
        assert field_type.zero() == zero
        assert field_type.is_zero(zero)

    def test_non_zero(self):
        assert not INTEGER.is_zero(3)
        assert not TEXT.is_zero("x")
        assert not FieldType(ColumnType.INTEGER, nullable=True).is_zero(0)


class TestAccepts:
    def test_bool_is_not_integer(self):
        assert not INTEGER.accepts(True)

    def test_int_is_float(self):
        assert FLOAT.accepts(3)

    def test_none_only_when_nullable(self):
        assert not TEXT.accepts(None)
        assert FieldType(ColumnType.TEXT, nullable=True).accepts(None)


class TestDecode:
    @pytest.mark.parametrize(
        "field_type,raw,expected",
        [
            (INTEGER, 7, 7),
            (INTEGER, Decimal("7"), 7),
            (INTEGER, 7.0, 7),
            (FLOAT, 3, 3.0),
            (FLOAT, Decimal("2.5"), 2.5),
            (TEXT, "John", "John"),
            (BOOLEAN, 1, True),
            (BOOLEAN, 0, False),
            (BOOLEAN, True, True),
            (TIMESTAMP, "2024-05-01T12:30:00", datetime(2024, 5, 1, 12, 30)),
            (TIMESTAMP, datetime(2024, 5, 1), datetime(2024, 5, 1)),
        ],
    )
    def test_decodes(self, field_type, raw, expected):
        value = field_type.decode(raw)
        assert value == expected
        assert type(value) is type(expected)

    @pytest.mark.parametrize(
        "field_type,raw",
        [
            (INTEGER, "7"),
            (INTEGER, 7.5),
            (INTEGER, float("inf")),
            (FLOAT, "2.5"),
            (TEXT, 7),
            (BOOLEAN, 2),
            (TIMESTAMP, "yesterday"),
            (TIMESTAMP, 1700000000),
        ],
    )
    def test_rejects(self, field_type, raw):
        with pytest.raises(ScanError):
            field_type.decode(raw)

    def test_null(self):
        assert FieldType(ColumnType.INTEGER, nullable=True).decode(None) is None
        with pytest.raises(ScanError):
            INTEGER.decode(None)


class TestField:
    def test_rejects_unassignable_value(self):
        with pytest.raises(FieldTypeError) as exc_info:
            Field("age", INTEGER, "nine")
        assert exc_info.value.context.column == "age"

    def test_with_value_copies(self):
        age = Field("age", INTEGER, 9)
        older = age.with_value(10)
        assert age.value == 9
        assert older == Field("age", INTEGER, 10)

    def test_with_value_validates(self):
        with pytest.raises(FieldTypeError):
            Field("age", INTEGER, 9).with_value("ten")

    def test_is_frozen(self):
        age = Field("age", INTEGER, 9)
        with pytest.raises(AttributeError):
            age.value = 10

    def test_is_zero(self):
        assert Field("id", INTEGER, 0).is_zero
        assert not Field("id", INTEGER, 1).is_zero

    def test_helpers(self):
        fields = [Field("id", INTEGER, 1), Field("name", TEXT, "John"), Field("age", INTEGER, 9)]
        assert field_names(fields) == ["id", "name", "age"]
        assert field_names(without(fields, fields[0])) == ["name", "age"]
