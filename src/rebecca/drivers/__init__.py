"""Storage drivers.

Architecture::

    Driver (base.py)                 CRUD contract over (table, fields, context)
        |-- SQLDriver (sql.py)       parameterized SQL through a DatabaseAdapter
        |-- MemoryDriver (memory.py) per-table lists, registered clause predicates

    registry.py                      process-wide driver slot + name -> driver class
"""

from .base import Driver, Row, RowSet
from .memory import MemoryDriver, Predicate, value_of
from .registry import (
    create_driver,
    current_driver,
    register_driver,
    reset_driver,
    setup_driver,
)
from .sql import SQLDriver

__all__ = [
    # Contract
    "Driver",
    "Row",
    "RowSet",
    # Implementations
    "SQLDriver",
    "MemoryDriver",
    "Predicate",
    "value_of",
    # Registry
    "setup_driver",
    "current_driver",
    "reset_driver",
    "register_driver",
    "create_driver",
]
