"""SQLite adapter over the stdlib ``sqlite3`` module.

One connection is opened per adapter and lent to one driver operation at a
time: :meth:`SQLiteAdapter.get_connection` takes the adapter's lock and
:meth:`SQLiteAdapter.release` gives it back, so concurrent threads sharing
a driver queue up instead of interleaving statements on the connection.

Rows come back as plain tuples; the relational driver decodes them by
position.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Any

from rebecca.errors import ConfigurationError, DatabaseConnectionError
from rebecca.logging import get_logger
from rebecca.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)

MEMORY = ":memory:"


class SQLiteAdapter(DatabaseAdapter):
    """Single-connection SQLite adapter.

    Args:
        path: Database file, ``:memory:`` or a ``file:`` URI
        readonly: Reject writes (``PRAGMA query_only``)
        timeout: Seconds to wait on a locked database file
        wal: Use write-ahead logging for file databases
    """

    def __init__(
        self,
        path: str | Path = MEMORY,
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        wal: bool = False,
        **kwargs: Any,
    ):
        super().__init__(
            DatabaseConfig(
                db_type=DatabaseType.SQLITE,
                path=str(path),
                readonly=readonly,
                options=kwargs,
            )
        )
        self._timeout = timeout
        self._wal = wal
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> SQLiteAdapter:
        """Adapter for a ``sqlite:///path`` URL (``sqlite://`` is in-memory)."""
        config = DatabaseConfig.from_url(url)
        if config.db_type is not DatabaseType.SQLITE:
            raise ConfigurationError(f"Not a SQLite URL: {url}")
        return cls(config.path, **kwargs)

    @property
    def path(self) -> str:
        return self._config.path or MEMORY

    def connect(self) -> None:
        if self._conn is not None:
            return

        try:
            conn = sqlite3.connect(
                self.path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=self.path.startswith("file:"),
                **self._config.options,
            )
            conn.execute("PRAGMA foreign_keys = ON")
            if self._wal and self.path != MEMORY:
                conn.execute("PRAGMA journal_mode = WAL")
            if self._config.readonly:
                conn.execute("PRAGMA query_only = ON")
        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to open SQLite database {self.path}: {e}",
                cause=e,
            ) from e

        self._conn = conn
        self._connected = True
        logger.debug("sqlite_connected", path=self.path, readonly=self._config.readonly)

    def disconnect(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                self._connected = False

    def get_connection(self) -> Connection:
        self._lock.acquire()
        try:
            self.connect()
        except BaseException:
            self._lock.release()
            raise
        return self._conn

    def release(self, conn: Connection) -> None:
        self._lock.release()


__all__ = [
    "SQLiteAdapter",
]
