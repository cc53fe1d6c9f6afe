"""Services package for Rowsift with dependency injection support.

Services receive their row store, settings and clock through the constructor so tests can run the
whole pipeline against an in-memory store and a fixed clock.
"""

from .export_service import ExportService, RowQueryService
from .row_store import InMemoryRowStore, RowStore

__all__ = ["ExportService", "InMemoryRowStore", "RowQueryService", "RowStore"]
