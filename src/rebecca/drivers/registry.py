"""Process-wide driver slot and driver factory.

The engine itself takes its driver explicitly.  This module only backs the
module-level convenience API (``rebecca.save(...)`` and friends): one driver
per process, replaced by every :func:`setup_driver` call.
"""

from __future__ import annotations

from typing import Any

from rebecca.errors import ConfigurationError
from rebecca.logging import get_logger

from .base import Driver
from .memory import MemoryDriver
from .sql import SQLDriver

logger = get_logger(__name__)

_current: Driver | None = None

_FACTORIES: dict[str, type[Driver]] = {
    "memory": MemoryDriver,
    "sql": SQLDriver,
}


def setup_driver(driver: Driver) -> None:
    """Install ``driver`` as the process-wide driver. Last call wins."""
    global _current
    _current = driver
    logger.debug("driver_installed", driver=type(driver).__name__)


def current_driver() -> Driver:
    """The installed driver.

    Raises:
        ConfigurationError: If :func:`setup_driver` was never called.
    """
    if _current is None:
        raise ConfigurationError("No driver installed; call setup_driver() first")
    return _current


def reset_driver() -> None:
    """Remove the installed driver (mainly for tests)."""
    global _current
    _current = None


def register_driver(name: str, driver_class: type[Driver]) -> None:
    """Make ``driver_class`` available to :func:`create_driver` as ``name``."""
    _FACTORIES[name.lower()] = driver_class


def create_driver(name: str, **kwargs: Any) -> Driver:
    """Create a driver by name.

    Usage:
        driver = create_driver("memory")
        driver = create_driver("sql", adapter=SQLiteAdapter("people.db"))
    """
    key = name.lower()
    if key not in _FACTORIES:
        raise ConfigurationError(
            f"Unknown driver '{name}'. Supported: {sorted(_FACTORIES)}"
        )
    return _FACTORIES[key](**kwargs)


__all__ = [
    "setup_driver",
    "current_driver",
    "reset_driver",
    "register_driver",
    "create_driver",
]
