"""SQL dialect abstraction for the relational driver.

A ``Dialect`` produces the SQL fragments that differ between backends:
placeholder style, the LIMIT/OFFSET clause, parameter binding of typed
values, and DDL column types.  The relational driver builds every
statement from these fragments plus table and column names; caller values
are always bound as parameters, never interpolated.

Architecture::

    ┌────────────────────────────┐   ┌────────────────────────────┐
    │ SQLiteDialect              │   │ PostgreSQLDialect          │
    │ ?1, ?2, ?3  (numbered)     │   │ %s, %s, %s  (psycopg2)     │
    │ LIMIT -1 OFFSET n          │   │ OFFSET n                   │
    │ datetime → ISO-8601 text   │   │ values passed through      │
    │ INTEGER PRIMARY KEY AUTOINC│   │ BIGSERIAL PRIMARY KEY      │
    └────────────────────────────┘   └────────────────────────────┘

Examples:
    >>> d = SQLiteDialect()
    >>> d.placeholders(3)
    '?1, ?2, ?3'
    >>> d.limit_clause(0, 5)
    ' LIMIT -1 OFFSET 5'
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from rebecca.field import ColumnType, FieldType


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a **SQL fragment** (string) or a bindable value
    valid for the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    # -- Placeholder generation --------------------------------------------

    #: True when placeholders carry their parameter index (``?1``, ``$1``).
    #: Anonymous styles bind parameters in the order they appear in the text.
    numbered: bool

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index).

        ``index`` is ignored by dialects that use anonymous placeholders
        (psycopg2 ``%s``) but required by numbered styles (SQLite ``?1``).
        """
        ...

    def placeholders(self, count: int, start: int = 0) -> str:
        """Comma-separated placeholder list for parameters ``start .. start+count-1``."""
        ...

    # -- Query clauses -----------------------------------------------------

    def limit_clause(self, limit: int, skip: int) -> str:
        """``LIMIT``/``OFFSET`` fragment; non-positive values are omitted."""
        ...

    def returning(self, column: str) -> str:
        """Fragment returning ``column`` from an INSERT."""
        ...

    # -- Parameter binding -------------------------------------------------

    def bind(self, value: Any) -> Any:
        """Convert a column value into something the DB-API driver accepts."""
        ...

    # -- DDL helpers -------------------------------------------------------

    def column_type(self, field_type: FieldType) -> str:
        """DDL type for a column (without nullability)."""
        ...

    def auto_increment(self) -> str:
        """DDL fragment for an auto-incrementing integer primary key."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class SQLiteDialect:
    """SQLite dialect: numbered ``?NNN`` placeholders, timestamps stored as ISO text."""

    _TYPES = {
        ColumnType.INTEGER: "INTEGER",
        ColumnType.FLOAT: "REAL",
        ColumnType.TEXT: "TEXT",
        ColumnType.BOOLEAN: "INTEGER",
        ColumnType.TIMESTAMP: "TEXT",
    }

    numbered = True

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:
        return f"?{index + 1}"

    def placeholders(self, count: int, start: int = 0) -> str:
        return ", ".join(self.placeholder(start + i) for i in range(count))

    def limit_clause(self, limit: int, skip: int) -> str:
        # SQLite only accepts OFFSET after a LIMIT
        if skip > 0:
            return f" LIMIT {limit if limit > 0 else -1} OFFSET {skip}"
        if limit > 0:
            return f" LIMIT {limit}"
        return ""

    def returning(self, column: str) -> str:
        return f" RETURNING {column}"

    def bind(self, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    def column_type(self, field_type: FieldType) -> str:
        return self._TYPES[field_type.column_type]

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"


class PostgreSQLDialect:
    """PostgreSQL dialect: ``%s`` placeholders (psycopg2), native types."""

    _TYPES = {
        ColumnType.INTEGER: "BIGINT",
        ColumnType.FLOAT: "DOUBLE PRECISION",
        ColumnType.TEXT: "TEXT",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.TIMESTAMP: "TIMESTAMP",
    }

    numbered = False

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int, start: int = 0) -> str:
        return ", ".join(self.placeholder(start + i) for i in range(count))

    def limit_clause(self, limit: int, skip: int) -> str:
        clause = ""
        if limit > 0:
            clause += f" LIMIT {limit}"
        if skip > 0:
            clause += f" OFFSET {skip}"
        return clause

    def returning(self, column: str) -> str:
        return f" RETURNING {column}"

    def bind(self, value: Any) -> Any:
        return value

    def column_type(self, field_type: FieldType) -> str:
        return self._TYPES[field_type.column_type]

    def auto_increment(self) -> str:
        return "BIGSERIAL PRIMARY KEY"


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "get_dialect",
    "register_dialect",
]
