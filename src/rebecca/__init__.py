"""rebecca: a small record mapper over pluggable storage drivers.

Declare records as annotated dataclasses, install a driver, then save,
load, query and remove them::

    import rebecca
    from rebecca import column, table
    from rebecca.drivers import MemoryDriver, setup_driver

    @table("people")
    class Person:
        id: int = column("id", primary=True)
        name: str = column("name")
        age: int = column("age")

    setup_driver(MemoryDriver())
    john = rebecca.save(Person(name="John", age=9))
    assert rebecca.get(Person, john.id) == john

Architecture::

    records ──► metadata (cached schema) ──► Engine ──► Driver
                                                          ├── SQLDriver ──► DatabaseAdapter ──► DB-API
                                                          └── MemoryDriver

Modules:
    - ``field``: column types, the decode contract, field descriptors
    - ``metadata``: ``@table`` / ``column``, schema extraction
    - ``context``: order / group / limit / skip
    - ``engine``: record-level CRUD façade
    - ``drivers``: driver contract, SQL and in-memory drivers, registry
    - ``adapters`` / ``dialect``: connection lifecycle and SQL dialects
    - ``errors`` / ``logging`` / ``settings``: ambient infrastructure
"""

from rebecca.context import DEFAULT_CONTEXT, Context, QueryContext
from rebecca.drivers import (
    Driver,
    MemoryDriver,
    SQLDriver,
    current_driver,
    reset_driver,
    setup_driver,
)
from rebecca.engine import Engine, all, first, get, remove, save, where  # noqa: A004
from rebecca.errors import (
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseError,
    FieldTypeError,
    NotFoundError,
    QueryError,
    RebeccaError,
    ScanError,
    WriteError,
)
from rebecca.field import ColumnType, Field, FieldType
from rebecca.metadata import column, table

__version__ = "0.1.0"

__all__ = [
    # Declaration
    "table",
    "column",
    # Values
    "ColumnType",
    "FieldType",
    "Field",
    # Query context
    "Context",
    "QueryContext",
    "DEFAULT_CONTEXT",
    # Engine
    "Engine",
    "save",
    "get",
    "all",
    "where",
    "first",
    "remove",
    # Drivers
    "Driver",
    "SQLDriver",
    "MemoryDriver",
    "setup_driver",
    "current_driver",
    "reset_driver",
    # Errors
    "RebeccaError",
    "ConfigurationError",
    "FieldTypeError",
    "DatabaseError",
    "NotFoundError",
    "WriteError",
    "QueryError",
    "ScanError",
    "DatabaseConnectionError",
]
