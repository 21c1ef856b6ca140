"""Driver contract implemented by every storage backend.

Drivers operate purely on a table name, sequences of :class:`Field`
descriptors and a :class:`Context`; they never see the record type the
descriptors came from.

Architecture::

    Engine ──(table, fields, context)──► Driver
                                           ├── get      one row by key
                                           ├── create   insert, returns new key
                                           ├── update   overwrite non-key columns
                                           ├── all      every row
                                           ├── where    rows matching a clause
                                           ├── first    first row matching a clause
                                           └── remove   delete by key

``all`` and ``where`` return a :class:`RowSet`: the rows that decoded plus
the last :class:`ScanError`, so one bad row does not discard the rest.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from rebecca.context import Context
from rebecca.errors import ScanError
from rebecca.field import Field

Row = list[Field]


@dataclass
class RowSet:
    """Result of a multi-row fetch: decoded rows plus the last scan error."""

    rows: list[Row] = field(default_factory=list)
    error: ScanError | None = None

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


class Driver(ABC):
    """Abstract storage backend."""

    @abstractmethod
    def get(self, table: str, fields: Sequence[Field], id: Field) -> Row:
        """Fetch exactly one row by primary key.

        Raises:
            NotFoundError: No row has this key.
            ScanError: A column could not be decoded.
        """
        ...

    @abstractmethod
    def create(self, table: str, fields: Sequence[Field], id: Field) -> Field:
        """Insert a row for all non-key fields.

        Returns:
            A copy of ``id`` holding the backend-assigned key.

        Raises:
            WriteError: The backend rejected the insert.
        """
        ...

    @abstractmethod
    def update(self, table: str, fields: Sequence[Field], id: Field) -> None:
        """Overwrite all non-key columns of the row identified by ``id``.

        A key that matches no row is not an error.

        Raises:
            WriteError: The backend rejected the update.
        """
        ...

    @abstractmethod
    def all(self, table: str, fields: Sequence[Field], context: Context) -> RowSet:
        """Fetch every row, shaped by ``context``."""
        ...

    @abstractmethod
    def where(
        self,
        table: str,
        fields: Sequence[Field],
        context: Context,
        where: str,
        *args: Any,
    ) -> RowSet:
        """Fetch rows satisfying the backend-interpreted ``where`` clause."""
        ...

    @abstractmethod
    def first(
        self,
        table: str,
        fields: Sequence[Field],
        context: Context,
        where: str,
        *args: Any,
    ) -> Row:
        """``where`` limited to one row.

        Raises:
            NotFoundError: No row matched.
        """
        ...

    @abstractmethod
    def remove(self, table: str, id: Field) -> None:
        """Delete the row identified by ``id``.

        Raises:
            WriteError: The backend rejected the delete.
        """
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


__all__ = [
    "Row",
    "RowSet",
    "Driver",
]
