"""Database adapters: connection lifecycle for the relational driver.

Architecture::

    DatabaseAdapter (base.py)        Abstract base: connect / connection / transaction
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- PostgreSQLAdapter        psycopg2 pool (optional extra)
        |-- SQLAlchemyAdapter        SQLAlchemy engine pool, any supported URL

    AdapterRegistry (registry.py)    name -> adapter class
    DatabaseConfig (types.py)        connection parameters
    DatabaseType (types.py)          enum of supported backends

Guardrails:
    ❌ ``cursor.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``cursor.execute("SELECT * FROM t WHERE id=?", [user_input])``
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``connect()`` time with clear ``ConfigurationError``
"""

from rebecca.dialect import Dialect, get_dialect
from rebecca.protocols import Connection

from .base import DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlalchemy import SQLAlchemyAdapter, create_pooled_engine
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    # Protocols / Abstractions
    "Connection",
    "Dialect",
    "get_dialect",
    # Base class
    "DatabaseAdapter",
    # Implementations
    "SQLiteAdapter",
    "PostgreSQLAdapter",
    "SQLAlchemyAdapter",
    "create_pooled_engine",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
