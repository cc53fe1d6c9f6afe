"""Pytest configuration for Rowsift tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from rowsift.core.clock import FixedClock
from rowsift.core.dependencies import reset_dependencies, set_clock, set_row_store
from rowsift.core.settings import RowsiftSettings, reset_settings
from rowsift.models.data_models import Column
from rowsift.services.export_service import ExportService, RowQueryService
from rowsift.services.row_store import InMemoryRowStore
from tests.factories import NOW, build_store, people_columns


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None]:
    """Give every test fresh settings and collaborators."""
    reset_settings()
    reset_dependencies()
    yield
    reset_settings()
    reset_dependencies()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def settings() -> RowsiftSettings:
    return RowsiftSettings()


@pytest.fixture
def store() -> InMemoryRowStore:
    return build_store()


@pytest.fixture
def columns() -> list[Column]:
    return people_columns()


@pytest.fixture
def export_service(
    store: InMemoryRowStore, settings: RowsiftSettings, clock: FixedClock
) -> ExportService:
    return ExportService(store, settings, clock)


@pytest.fixture
def row_query_service(
    store: InMemoryRowStore, settings: RowsiftSettings, clock: FixedClock
) -> RowQueryService:
    return RowQueryService(store, settings, clock)


@pytest.fixture
def installed_store(store: InMemoryRowStore, clock: FixedClock) -> InMemoryRowStore:
    """Install the test store and clock as the process-wide collaborators."""
    set_row_store(store)
    set_clock(clock)
    return store
