"""
Shared pytest fixtures and configuration for rebecca tests.

This module provides:
- Process-wide driver and settings cleanup for test isolation
- Memory and SQLite-backed drivers with the test tables ready
- A parametrised ``driver`` fixture running a test against both backends

Usage:
    def test_saves(driver):
        Engine(driver).save(Person(name="John", age=9))
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Ensure the rebecca package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rebecca.adapters import SQLiteAdapter
from rebecca.drivers import Driver, MemoryDriver, SQLDriver, reset_driver
from rebecca.engine import Engine
from rebecca.settings import clear_settings_cache
from tests._support.records import (
    AGE_AT_LEAST,
    AGE_BELOW,
    NAME_IS,
    Badge,
    Event,
    Person,
    age_at_least,
    age_below,
    name_is,
)


@pytest.fixture(autouse=True)
def _isolate_process_state() -> Iterator[None]:
    """Every test starts without an installed driver or cached settings."""
    reset_driver()
    clear_settings_cache()
    yield
    reset_driver()
    clear_settings_cache()


@pytest.fixture
def memory_driver() -> MemoryDriver:
    driver = MemoryDriver()
    driver.register_where(AGE_BELOW, age_below)
    driver.register_where(AGE_AT_LEAST, age_at_least)
    driver.register_where(NAME_IS, name_is)
    return driver


@pytest.fixture
def sqlite_adapter() -> Iterator[SQLiteAdapter]:
    adapter = SQLiteAdapter(":memory:")
    adapter.connect()
    yield adapter
    adapter.disconnect()


@pytest.fixture
def sql_driver(sqlite_adapter: SQLiteAdapter) -> SQLDriver:
    driver = SQLDriver(sqlite_adapter)
    driver.create_table(Person)
    driver.create_table(Event)
    driver.create_table(Badge)
    return driver


@pytest.fixture(params=["memory_driver", "sql_driver"], ids=["memory", "sqlite"])
def driver(request: pytest.FixtureRequest) -> Driver:
    """Parametric fixture: run each test against every driver."""
    return request.getfixturevalue(request.param)


@pytest.fixture
def engine(driver: Driver) -> Engine:
    return Engine(driver)
