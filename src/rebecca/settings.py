"""Environment-driven settings for the process-wide driver.

Settings are read from ``REBECCA_*`` environment variables and a ``.env``
file, validated by pydantic, and used by :func:`setup_from_settings` to
build and install a driver without hand-wiring adapters::

    REBECCA_DRIVER=sqlite
    REBECCA_SQLITE_PATH=data/people.db
    REBECCA_LOG_LEVEL=DEBUG

Fields
──────
driver        : ``memory`` / ``sqlite`` / ``postgresql``
database_url  : SQLAlchemy URL used by the ``postgresql`` driver
sqlite_path   : Database file for the ``sqlite`` driver (``:memory:`` default)
pool_size     : Connection pool size for pooled backends
log_level     : ``DEBUG`` / ``INFO`` / ``WARNING`` / ``ERROR`` / ``CRITICAL`` (any case)
log_format    : ``json`` or ``console``
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rebecca.adapters import SQLAlchemyAdapter, SQLiteAdapter
from rebecca.drivers import Driver, MemoryDriver, SQLDriver, setup_driver
from rebecca.logging import configure_logging, get_logger

logger = get_logger(__name__)


class DriverBackend(str, Enum):
    MEMORY = "memory"
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class RebeccaSettings(BaseSettings):
    """Driver, connection and logging settings."""

    model_config = SettingsConfigDict(
        env_prefix="REBECCA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Driver ───────────────────────────────────────────────────
    driver: DriverBackend = Field(default=DriverBackend.MEMORY)

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="postgresql+psycopg2://localhost:5432/rebecca")
    sqlite_path: str = Field(default=":memory:")
    pool_size: int = Field(default=5, ge=1)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO", pattern="^(?i:debug|info|warning|error|critical)$")
    log_format: str = Field(default="console", pattern="^(json|console)$")

    @model_validator(mode="after")
    def _normalise_log_level(self) -> RebeccaSettings:
        object.__setattr__(self, "log_level", self.log_level.upper())
        return self


_settings_cache: dict[str, RebeccaSettings] = {}


def get_settings(*, _force_reload: bool = False) -> RebeccaSettings:
    """Load, validate, and cache a :class:`RebeccaSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = RebeccaSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


def build_driver(settings: RebeccaSettings) -> Driver:
    """Construct the driver described by ``settings`` without installing it."""
    match settings.driver:
        case DriverBackend.MEMORY:
            return MemoryDriver()
        case DriverBackend.SQLITE:
            return SQLDriver(SQLiteAdapter(settings.sqlite_path))
        case DriverBackend.POSTGRESQL:
            return SQLDriver(SQLAlchemyAdapter(settings.database_url, pool_size=settings.pool_size))
    raise AssertionError(f"unhandled driver backend {settings.driver!r}")


def setup_from_settings(settings: RebeccaSettings | None = None) -> Driver:
    """Configure logging, then build and install the driver from settings.

    Returns:
        The installed driver.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")

    driver = build_driver(settings)
    setup_driver(driver)
    logger.info("driver_configured", backend=settings.driver.value)
    return driver


__all__ = [
    "DriverBackend",
    "RebeccaSettings",
    "get_settings",
    "clear_settings_cache",
    "build_driver",
    "setup_from_settings",
]
