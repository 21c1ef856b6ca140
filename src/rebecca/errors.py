"""
Structured error types for rebecca.

Every error raised by the mapping engine or a driver is a
:class:`RebeccaError`.  Errors carry a category, a retry hint, a
structured context (table, operation, column, ...) and the chained
backend exception, so callers can log them with full diagnostics.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                      RebeccaError                         │
        │        (category, retryable, context, cause)              │
        ├──────────────────────────────────────────────────────────┤
        │                                                           │
        │  ConfigurationError   FieldTypeError    DatabaseError     │
        │  (CONFIG)             (VALIDATION)      (DATABASE)        │
        │                                              │            │
        │                         NotFoundError  WriteError         │
        │                         ScanError      QueryError         │
        │                                                           │
        │  DatabaseConnectionError (DATABASE, retryable)            │
        └──────────────────────────────────────────────────────────┘

Propagation:
    - **ConfigurationError:** detected while reading a record type's
      declared shape.  Fatal, never retryable.
    - **NotFoundError:** a single-row fetch matched zero rows.
    - **WriteError:** the backend rejected an insert, update or delete.
    - **ScanError:** a column value could not be decoded into its declared
      type.  Multi-row fetches attach the successfully decoded records as
      ``error.records``.

Examples:
    >>> error = NotFoundError("no row with id = 7").with_context(table="people")
    >>> error.context.table
    'people'
    >>> error.retryable
    False
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories for classification and routing."""

    DATABASE = "DATABASE"         # Query, write, scan, connection
    VALIDATION = "VALIDATION"     # Value not assignable to a column type
    CONFIG = "CONFIG"             # Record declaration, driver setup
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        table: Table the operation targeted
        operation: Engine or driver operation (``save``, ``get``, ...)
        column: Storage column involved, if any
        query: SQL text or clause that was executed
        metadata: Additional key-value pairs
    """

    table: str | None = None
    operation: str | None = None
    column: str | None = None
    query: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Set fields only, with ``metadata`` merged in at the top level."""
        known = {
            "table": self.table,
            "operation": self.operation,
            "column": self.column,
            "query": self.query,
        }
        return {**{k: v for k, v in known.items() if v is not None}, **self.metadata}


class RebeccaError(Exception):
    """
    Base class for all rebecca errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RebeccaError:
        """
        Add context to this error (fluent API).

        Known keys fill :class:`ErrorContext` fields, anything else lands in
        ``context.metadata``.  Keys that are already set are kept so the
        innermost layer's diagnostics win.
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                if getattr(self.context, key) is None:
                    setattr(self.context, key, value)
            else:
                self.context.metadata.setdefault(key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Flat representation used by the ``error=`` log processor."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if details := self.context.to_dict():
            result["context"] = details
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION / VALIDATION
# =============================================================================


class ConfigurationError(RebeccaError):
    """Invalid record declaration or driver setup.

    Raised for a missing table name, a missing or duplicated primary key,
    an unsupported field annotation, or when no driver is installed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class FieldTypeError(RebeccaError):
    """A value is not assignable to its column's declared type."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(RebeccaError):
    """Storage backend error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class NotFoundError(DatabaseError):
    """A single-row fetch matched zero rows."""

    pass


class WriteError(DatabaseError):
    """The backend rejected an insert, update or delete."""

    pass


class QueryError(DatabaseError):
    """A read query could not be executed."""

    pass


class ScanError(DatabaseError):
    """A fetched column value could not be decoded into its declared type.

    For multi-row fetches the engine attaches the records that did decode
    as :attr:`records`.
    """

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.records: list[Any] = []


class DatabaseConnectionError(DatabaseError):
    """The backend could not be reached or the pool had no connection to lend."""

    default_retryable = True


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Whether retrying the failed operation may succeed."""
    if isinstance(error, RebeccaError):
        return error.retryable
    return isinstance(error, (ConnectionError, BrokenPipeError))


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RebeccaError",
    "ConfigurationError",
    "FieldTypeError",
    "DatabaseError",
    "NotFoundError",
    "WriteError",
    "QueryError",
    "ScanError",
    "DatabaseConnectionError",
    "is_retryable",
]
