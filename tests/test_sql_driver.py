"""Tests for ``rebecca.drivers.sql``: statement text, binding and error mapping."""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock

import pytest

from rebecca.adapters.base import DatabaseAdapter
from rebecca.adapters.types import DatabaseConfig, DatabaseType
from rebecca.context import QueryContext
from rebecca.drivers.sql import SQLDriver
from rebecca.errors import NotFoundError, QueryError, ScanError, WriteError
from rebecca.metadata import extract
from tests._support.records import Event, Person

FIELDS = extract(Person(id=5, name="John", age=9)).fields
KEY = FIELDS[0]
EMPTY = extract(Person()).fields


class RecordingAdapter(DatabaseAdapter):
    """Adapter handing out one mock connection and cursor."""

    def __init__(self, db_type: DatabaseType = DatabaseType.SQLITE):
        super().__init__(DatabaseConfig(db_type=db_type))
        self.conn = MagicMock()
        self.cursor = self.conn.cursor.return_value

    def connect(self) -> None:
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False

    def get_connection(self):
        return self.conn

    def release(self, conn) -> None:
        pass

    @property
    def executed(self) -> tuple[str, tuple]:
        return self.cursor.execute.call_args.args


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def pg_adapter() -> RecordingAdapter:
    return RecordingAdapter(DatabaseType.POSTGRESQL)


# =========================================================================
# Statement text and parameter order
# =========================================================================


class TestGet:
    def test_sqlite_statement(self, adapter):
        adapter.cursor.fetchone.return_value = (5, "John", 9)

        row = SQLDriver(adapter).get("people", EMPTY, KEY)

        assert adapter.executed == ("SELECT id, name, age FROM people WHERE id = ?1 LIMIT 1", (5,))
        assert [f.value for f in row] == [5, "John", 9]

    def test_postgresql_statement(self, pg_adapter):
        pg_adapter.cursor.fetchone.return_value = (5, "John", 9)

        SQLDriver(pg_adapter).get("people", EMPTY, KEY)

        assert pg_adapter.executed == ("SELECT id, name, age FROM people WHERE id = %s LIMIT 1", (5,))

    def test_returns_fresh_descriptors(self, adapter):
        adapter.cursor.fetchone.return_value = (5, "John", 9)

        row = SQLDriver(adapter).get("people", EMPTY, KEY)

        assert [f.value for f in EMPTY] == [0, "", 0]
        assert all(a is not b for a, b in zip(row, EMPTY))

    def test_missing_row(self, adapter):
        adapter.cursor.fetchone.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            SQLDriver(adapter).get("people", EMPTY, KEY)
        assert exc_info.value.context.query.startswith("SELECT")


class TestCreate:
    def test_sqlite_statement(self, adapter):
        adapter.cursor.fetchone.return_value = (1,)

        key = SQLDriver(adapter).create("people", FIELDS, KEY.with_value(0))

        assert adapter.executed == (
            "INSERT INTO people (name, age) VALUES (?1, ?2) RETURNING id",
            ("John", 9),
        )
        assert key.name == "id"
        assert key.value == 1
        adapter.conn.commit.assert_called_once()

    def test_postgresql_statement(self, pg_adapter):
        pg_adapter.cursor.fetchone.return_value = (1,)

        SQLDriver(pg_adapter).create("people", FIELDS, KEY.with_value(0))

        assert pg_adapter.executed == (
            "INSERT INTO people (name, age) VALUES (%s, %s) RETURNING id",
            ("John", 9),
        )

    def test_backend_failure_becomes_write_error(self, adapter):
        adapter.cursor.execute.side_effect = sqlite3.IntegrityError("NOT NULL constraint failed")

        with pytest.raises(WriteError) as exc_info:
            SQLDriver(adapter).create("people", FIELDS, KEY.with_value(0))

        assert "NOT NULL constraint failed" in str(exc_info.value)
        assert isinstance(exc_info.value.cause, sqlite3.IntegrityError)
        adapter.conn.rollback.assert_called_once()
        adapter.cursor.close.assert_called_once()

    def test_no_key_returned(self, adapter):
        adapter.cursor.fetchone.return_value = None

        with pytest.raises(WriteError):
            SQLDriver(adapter).create("people", FIELDS, KEY.with_value(0))


class TestUpdate:
    def test_sqlite_binds_key_first(self, adapter):
        SQLDriver(adapter).update("people", FIELDS, KEY)

        assert adapter.executed == (
            "UPDATE people SET name = ?2, age = ?3 WHERE id = ?1",
            (5, "John", 9),
        )
        adapter.conn.commit.assert_called_once()

    def test_postgresql_binds_in_textual_order(self, pg_adapter):
        SQLDriver(pg_adapter).update("people", FIELDS, KEY)

        assert pg_adapter.executed == (
            "UPDATE people SET name = %s, age = %s WHERE id = %s",
            ("John", 9, 5),
        )

    def test_failure_names_key(self, adapter):
        adapter.cursor.execute.side_effect = sqlite3.OperationalError("database is locked")

        with pytest.raises(WriteError) as exc_info:
            SQLDriver(adapter).update("people", FIELDS, KEY)

        assert "primary key = 5" in str(exc_info.value)
        assert exc_info.value.context.operation == "update"
        adapter.cursor.close.assert_called_once()


class TestRemove:
    def test_statement(self, adapter):
        SQLDriver(adapter).remove("people", KEY)
        assert adapter.executed == ("DELETE FROM people WHERE id = ?1", (5,))


class TestContextClause:
    def test_full_composition_order(self, adapter):
        context = QueryContext(group="g", order="o", limit=5, skip=2)

        SQLDriver(adapter).all("people", EMPTY, context)

        sql, params = adapter.executed
        assert sql == "SELECT id, name, age FROM people GROUP BY g ORDER BY o LIMIT 5 OFFSET 2"
        assert params == ()

    @pytest.mark.parametrize(
        "context,suffix",
        [
            (QueryContext(), "FROM people"),
            (QueryContext(order="age DESC"), "FROM people ORDER BY age DESC"),
            (QueryContext(group="age"), "FROM people GROUP BY age"),
            (QueryContext(limit=3), "FROM people LIMIT 3"),
            (QueryContext(skip=4), "FROM people LIMIT -1 OFFSET 4"),
        ],
    )
    def test_omits_unset_parts(self, adapter, context, suffix):
        SQLDriver(adapter).all("people", EMPTY, context)
        assert adapter.executed[0].endswith(suffix)

    def test_postgresql_offset_without_limit(self, pg_adapter):
        SQLDriver(pg_adapter).all("people", EMPTY, QueryContext(skip=4))
        assert pg_adapter.executed[0].endswith("FROM people OFFSET 4")

    def test_where_binds_only_clause_args(self, adapter):
        SQLDriver(adapter).where("people", EMPTY, QueryContext(order="age"), "age < ?1", 12)

        assert adapter.executed == (
            "SELECT id, name, age FROM people WHERE age < ?1 ORDER BY age",
            (12,),
        )

    def test_first_forces_limit_one(self, adapter):
        adapter.cursor.fetchone.return_value = (1, "John", 9)

        SQLDriver(adapter).first("people", EMPTY, QueryContext(limit=100), "age < ?1", 12)

        assert adapter.executed[0] == "SELECT id, name, age FROM people WHERE age < ?1 LIMIT 1"


# =========================================================================
# Row decoding
# =========================================================================


class TestRowSet:
    def test_decodes_rows_in_order(self, adapter):
        adapter.cursor.__iter__.return_value = iter([(1, "John", 9), (2, "Sarah", 27)])

        result = SQLDriver(adapter).all("people", EMPTY, QueryContext())

        assert [[f.value for f in row] for row in result] == [[1, "John", 9], [2, "Sarah", 27]]
        assert result.error is None
        adapter.cursor.close.assert_called_once()

    def test_bad_row_is_skipped_and_reported(self, adapter):
        adapter.cursor.__iter__.return_value = iter(
            [(1, "John", 9), (2, "Bad", "old"), (3, "James", 11)]
        )

        result = SQLDriver(adapter).all("people", EMPTY, QueryContext())

        assert [row[1].value for row in result] == ["John", "James"]
        assert isinstance(result.error, ScanError)
        assert result.error.context.column == "age"

    def test_last_scan_error_wins(self, adapter):
        adapter.cursor.__iter__.return_value = iter([(1, None, 9), (2, "Sarah", "old")])

        result = SQLDriver(adapter).all("people", EMPTY, QueryContext())

        assert len(result) == 0
        assert result.error.context.column == "age"

    def test_column_count_mismatch(self, adapter):
        adapter.cursor.fetchone.return_value = (5, "John")

        with pytest.raises(ScanError):
            SQLDriver(adapter).get("people", EMPTY, KEY)

    def test_execution_failure_becomes_query_error(self, adapter):
        adapter.cursor.execute.side_effect = sqlite3.OperationalError("no such table: people")

        with pytest.raises(QueryError) as exc_info:
            SQLDriver(adapter).all("people", EMPTY, QueryContext())

        assert "no such table" in str(exc_info.value)
        adapter.cursor.close.assert_called_once()
        adapter.conn.rollback.assert_called_once()


# =========================================================================
# Schema helpers against a real SQLite database
# =========================================================================


class TestCreateTable:
    def test_ddl(self, adapter):
        SQLDriver(adapter).create_table(Person)

        assert adapter.executed == (
            "CREATE TABLE IF NOT EXISTS people "
            "(id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, age INTEGER NOT NULL)",
            (),
        )

    def test_nullable_column(self, pg_adapter):
        SQLDriver(pg_adapter).create_table(Event)

        sql = pg_adapter.executed[0]
        assert "id BIGSERIAL PRIMARY KEY" in sql
        assert "happened_at TIMESTAMP NOT NULL" in sql
        assert sql.endswith("note TEXT)")

    def test_creates_usable_table(self, sqlite_adapter):
        driver = SQLDriver(sqlite_adapter)
        driver.create_table(Person)

        key = driver.create("people", FIELDS, KEY.with_value(0))

        assert [f.value for f in driver.get("people", EMPTY, key)] == [1, "John", 9]

    def test_drop_table(self, sqlite_adapter):
        driver = SQLDriver(sqlite_adapter)
        driver.create_table(Person)
        driver.drop_table("people")

        with pytest.raises(QueryError):
            driver.all("people", EMPTY, QueryContext())
