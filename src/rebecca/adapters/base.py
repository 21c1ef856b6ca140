"""Common adapter behaviour.

An adapter owns how connections are opened, lent out and closed for one
backend, and names the SQL dialect that backend speaks.  The relational
driver only ever does::

    with adapter.connection() as conn:
        cursor = conn.cursor()
        ...

so pooling (psycopg2, SQLAlchemy) and serialised access (SQLite) stay
behind :meth:`DatabaseAdapter.get_connection` / :meth:`DatabaseAdapter.release`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from rebecca.dialect import Dialect, get_dialect
from rebecca.errors import ConfigurationError
from rebecca.protocols import Connection

from .types import DatabaseConfig, DatabaseType


class DatabaseAdapter(ABC):
    """Connection lifecycle for one backend."""

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> DatabaseAdapter:
        raise ConfigurationError(f"{cls.__name__} cannot be built from a database URL")

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        return self._config.db_type

    @property
    def is_connected(self) -> bool:
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Open the connection or pool; calling it again is a no-op."""

    @abstractmethod
    def disconnect(self) -> None:
        """Close everything :meth:`connect` opened."""

    @abstractmethod
    def get_connection(self) -> Connection:
        """Lend a connection, connecting first if needed.

        Every connection lent must be handed back through :meth:`release`.
        """

    @abstractmethod
    def release(self, conn: Connection) -> None:
        """Take back a connection lent by :meth:`get_connection`."""

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        conn = self.get_connection()
        try:
            yield conn
        finally:
            self.release(conn)

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Like :meth:`connection`, committing on success and rolling back on error."""
        with self.connection() as conn:
            try:
                yield conn
            except Exception:
                conn.rollback()
                raise
            conn.commit()

    def __enter__(self) -> DatabaseAdapter:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        state = "connected" if self._connected else "idle"
        return f"<{type(self).__name__} {self.db_type.value} {state}>"


__all__ = [
    "DatabaseAdapter",
]
