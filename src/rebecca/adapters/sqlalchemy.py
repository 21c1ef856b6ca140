"""Adapter over a SQLAlchemy engine's connection pool.

Runs the relational driver against any URL SQLAlchemy understands
(``sqlite:///people.db``, ``postgresql+psycopg2://...``).  The driver still
speaks DB-API: each connection lent out is the pool's raw DB-API proxy, and
closing that proxy on release checks it back into the pool.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from rebecca.errors import DatabaseConnectionError
from rebecca.logging import get_logger
from rebecca.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def create_pooled_engine(
    url: str,
    *,
    echo: bool = False,
    pool_size: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Engine for ``url`` configured the way the relational driver expects.

    SQLite connections may be used from any pooled thread and get foreign
    keys switched on; ``pool_size`` only applies to server backends.
    Remaining ``kwargs`` go to ``sqlalchemy.create_engine``.
    """
    if DatabaseType.from_url(url) is DatabaseType.SQLITE:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_foreign_keys)
        return engine

    if pool_size is not None:
        kwargs["pool_size"] = pool_size
    return create_engine(url, echo=echo, **kwargs)


class SQLAlchemyAdapter(DatabaseAdapter):
    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int | None = None,
        **kwargs: Any,
    ):
        config = DatabaseConfig.from_url(url, options=kwargs)
        if pool_size is not None:
            config.pool_size = pool_size
        super().__init__(config)
        self._url = url
        self._echo = echo
        self._pool_size = pool_size
        self._engine: Engine | None = None

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> SQLAlchemyAdapter:
        return cls(url, **kwargs)

    @property
    def engine(self) -> Engine | None:
        return self._engine

    def connect(self) -> None:
        if self._engine is not None:
            return
        try:
            self._engine = create_pooled_engine(
                self._url,
                echo=self._echo,
                pool_size=self._pool_size,
                **self._config.options,
            )
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to create engine for {self.db_type.value}: {e}",
                cause=e,
            ) from e
        self._connected = True
        logger.debug("sqlalchemy_engine_created", url=self._config.url.render_as_string())

    def disconnect(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._connected = False

    def get_connection(self) -> Connection:
        self.connect()
        try:
            return self._engine.raw_connection()
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to check out a {self.db_type.value} connection: {e}",
                cause=e,
            ) from e

    def release(self, conn: Connection) -> None:
        conn.close()


__all__ = [
    "SQLAlchemyAdapter",
    "create_pooled_engine",
]
