"""Query context: ordering, grouping, limit and skip for multi-row fetches.

Contexts are immutable.  Every setter returns a new context, so a base
context can serve as a template for many queries::

    base = QueryContext().set_order("age DESC")
    page = base.set_limit(10).set_skip(20)
    assert base.limit == 0

An empty string or a non-positive integer means "omit this clause".
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Protocol, runtime_checkable


@runtime_checkable
class Context(Protocol):
    """Querying context consumed by drivers."""

    @property
    def order(self) -> str: ...

    @property
    def group(self) -> str: ...

    @property
    def limit(self) -> int: ...

    @property
    def skip(self) -> int: ...

    def set_order(self, order: str) -> Context: ...

    def set_group(self, group: str) -> Context: ...

    def set_limit(self, limit: int) -> Context: ...

    def set_skip(self, skip: int) -> Context: ...


@dataclass(frozen=True)
class QueryContext:
    """Default :class:`Context` implementation."""

    order: str = ""
    group: str = ""
    limit: int = 0
    skip: int = 0

    def set_order(self, order: str) -> QueryContext:
        return replace(self, order=order)

    def set_group(self, group: str) -> QueryContext:
        return replace(self, group=group)

    def set_limit(self, limit: int) -> QueryContext:
        return replace(self, limit=limit)

    def set_skip(self, skip: int) -> QueryContext:
        return replace(self, skip=skip)


DEFAULT_CONTEXT = QueryContext()


__all__ = [
    "Context",
    "QueryContext",
    "DEFAULT_CONTEXT",
]
