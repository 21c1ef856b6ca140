"""Backend identifiers and connection parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from rebecca.errors import ConfigurationError


class DatabaseType(str, Enum):
    """Backends the relational driver has a dialect for."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"

    @classmethod
    def from_url(cls, url: str | URL) -> DatabaseType:
        """Backend of a database URL; the DB-API driver suffix is ignored.

        ``postgresql+psycopg2://...`` and ``postgres://...`` both map to
        :attr:`POSTGRESQL`.
        """
        try:
            backend = make_url(url).get_backend_name()
        except ArgumentError as e:
            raise ConfigurationError(f"Invalid database URL: {url!r}", cause=e) from e

        if backend == "postgres":
            backend = "postgresql"
        try:
            return cls(backend)
        except ValueError:
            raise ConfigurationError(f"Unsupported database URL scheme: '{backend}'") from None


@dataclass
class DatabaseConfig:
    """Connection parameters; each adapter reads the fields its backend uses."""

    db_type: DatabaseType = DatabaseType.SQLITE

    # sqlite
    path: str | None = None

    # server backends
    host: str = "localhost"
    port: int = 5432
    database: str = ""
    username: str | None = None
    password: str | None = None
    pool_size: int = 5
    connect_timeout: int = 10

    readonly: bool = False

    # passed through to the DB-API connect call
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def url(self) -> URL:
        """SQLAlchemy URL for these parameters (password kept, not rendered by ``str``)."""
        if self.db_type is DatabaseType.SQLITE:
            return URL.create("sqlite", database=self.path or ":memory:")
        return URL.create(
            "postgresql",
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database or None,
        )

    @classmethod
    def from_url(cls, url: str | URL, **overrides: Any) -> DatabaseConfig:
        """Parse ``url`` into a config; ``overrides`` win over parsed values."""
        parsed = make_url(url)
        db_type = DatabaseType.from_url(parsed)
        values: dict[str, Any] = {"db_type": db_type}
        if db_type is DatabaseType.SQLITE:
            values["path"] = parsed.database or ":memory:"
        else:
            values.update(
                host=parsed.host or "localhost",
                port=parsed.port or 5432,
                database=parsed.database or "",
                username=parsed.username,
                password=parsed.password,
            )
            values["options"] = dict(parsed.query)
        values.update(overrides)
        return cls(**values)


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
