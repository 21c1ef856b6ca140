"""Adapter lookup by name or by database URL.

Names registered out of the box:

- ``sqlite`` -> :class:`SQLiteAdapter`
- ``postgresql`` and ``postgres`` -> :class:`PostgreSQLAdapter`
- ``sqlalchemy`` -> :class:`SQLAlchemyAdapter`
"""

from __future__ import annotations

from typing import Any

from rebecca.errors import ConfigurationError

from .base import DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .sqlalchemy import SQLAlchemyAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType


class AdapterRegistry:
    def __init__(self):
        self._adapters: dict[str, type[DatabaseAdapter]] = {
            "sqlite": SQLiteAdapter,
            "postgresql": PostgreSQLAdapter,
            "postgres": PostgreSQLAdapter,
            "sqlalchemy": SQLAlchemyAdapter,
        }

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        self._adapters[name.lower()] = adapter_class

    def lookup(self, name: str) -> type[DatabaseAdapter]:
        try:
            return self._adapters[name.lower()]
        except KeyError:
            raise ConfigurationError(
                f"Unknown database adapter '{name}'. Supported: {self.list_adapters()}"
            ) from None

    def create(self, name: str, **kwargs: Any) -> DatabaseAdapter:
        return self.lookup(name)(**kwargs)

    def from_url(self, url: str, **kwargs: Any) -> DatabaseAdapter:
        """Native adapter for the URL's backend (``sqlite:///people.db`` -> SQLite)."""
        adapter_class = self.lookup(DatabaseType.from_url(url).value)
        return adapter_class.from_url(url, **kwargs)

    def list_adapters(self) -> list[str]:
        return sorted(self._adapters)


adapter_registry = AdapterRegistry()


def get_adapter(db_type: DatabaseType | str, **kwargs: Any) -> DatabaseAdapter:
    """Build an adapter by backend or registered name.

    Usage:
        adapter = get_adapter(DatabaseType.SQLITE, path="people.db")
        adapter = get_adapter("sqlalchemy", url="postgresql://localhost/people")
    """
    name = db_type.value if isinstance(db_type, DatabaseType) else db_type
    return adapter_registry.create(name, **kwargs)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
