"""
Structured logging for rebecca.

The engine, drivers and adapters log key-value events through structlog
(``record_created``, ``sql_execute``, ``row_scan_failed`` ...).  Nothing is
configured on import; applications call :func:`configure_logging` once, or
let :func:`rebecca.settings.setup_from_settings` do it from ``REBECCA_*``
variables.

Processor chain::

    merge_contextvars ─► timestamp ─► level / logger name
        ─► service.name ─► error expansion ─► SQL shortening
        ─► ECS field names (JSON only) ─► JSONRenderer | ConsoleRenderer

A :class:`RebeccaError` passed as ``error=`` is expanded into flat
``error.*`` fields (type, category, table, operation, column, query), so
log aggregation can filter on them without parsing messages.

Examples:
    >>> configure_logging(level="INFO", json_format=True, service="people-api")
    >>> logger = get_logger(__name__)
    >>> logger.warning("row_scan_failed", error=scan_error)

    Scoped context for a unit of work:

    >>> with log_context(request_id="abc123"):
    ...     rebecca.save(person)
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from rebecca.errors import ConfigurationError, RebeccaError

_SERVICE_NAME = "rebecca"
_SQL_MAX_LENGTH = 500


def _add_service_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _expand_error(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Flatten a ``RebeccaError`` under ``error=`` into ``error.*`` fields."""
    error = event_dict.get("error")
    if not isinstance(error, RebeccaError):
        return event_dict

    details = error.to_dict()
    event_dict["error"] = details["message"]
    event_dict["error.type"] = details["error_type"]
    event_dict["error.category"] = details["category"]
    for key, value in details.get("context", {}).items():
        event_dict[f"error.{key}"] = value
    return event_dict


def _shorten_sql(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Collapse whitespace in ``sql`` and cap its length."""
    sql = event_dict.get("sql")
    if isinstance(sql, str):
        sql = " ".join(sql.split())
        if len(sql) > _SQL_MAX_LENGTH:
            sql = sql[:_SQL_MAX_LENGTH] + "..."
        event_dict["sql"] = sql
    return event_dict


def _ecs_fields(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename timestamp and level to their ECS names."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "rebecca",
    *,
    sql_max_length: int = 500,
) -> None:
    """Configure structlog (and the stdlib root logger it writes through).

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL), any case
        json_format: True for JSON, False for console, None for JSON unless stdout is a tty
        service: Value of the ``service.name`` field
        sql_max_length: Longest ``sql`` value emitted before truncation
    """
    global _SERVICE_NAME, _SQL_MAX_LENGTH
    _SERVICE_NAME = service
    _SQL_MAX_LENGTH = sql_max_length

    if json_format is None:
        json_format = not sys.stdout.isatty()
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ConfigurationError(f"Unknown log level: {level!r}")

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service_name,
        _expand_error,
        _shorten_sql,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if json_format:
        processors += [_ecs_fields, structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Structured logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind key-value pairs to every subsequent log event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind ``kwargs`` for the duration of the block, then restore the previous values."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "log_context",
]
