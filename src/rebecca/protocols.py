"""
DB-API protocols consumed by the relational driver.

The SQL driver talks to any DB-API 2.0 connection (``sqlite3``,
``psycopg2``, a SQLAlchemy pool proxy) through these structural
protocols, so it never imports a database module itself.

Architecture:
    ::

        Connection Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ cursor()    → Cursor                                   │
        │ commit()    → Commit transaction                       │
        │ rollback()  → Rollback transaction                     │
        └────────────────────────────────────────────────────────┘

        Cursor Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ execute(sql, params) → Execute single statement        │
        │ fetchone()           → One result row or None          │
        │ close()              → Release the cursor              │
        │ iteration            → Remaining result rows           │
        └────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """Minimal DB-API cursor."""

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute SQL statement with positional parameters."""
        ...

    def fetchone(self) -> Sequence[Any] | None:
        """Get next result row, or None when exhausted."""
        ...

    def close(self) -> None:
        """Release the cursor."""
        ...

    def __iter__(self) -> Iterator[Sequence[Any]]:
        ...


@runtime_checkable
class Connection(Protocol):
    """Minimal SYNCHRONOUS DB-API connection."""

    def cursor(self) -> Cursor:
        """Open a new cursor."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


__all__ = [
    "Connection",
    "Cursor",
]
