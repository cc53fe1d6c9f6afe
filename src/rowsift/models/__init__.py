"""Data models for Rowsift."""

from __future__ import annotations

from .data_models import (
    Cell,
    Column,
    ColumnFamily,
    ColumnType,
    Database,
    ExportFormat,
    FilterCondition,
    FilterOperator,
    IgnoredFilter,
    Row,
    Table,
)
from .predicates import CellPredicate, RowPredicate, ValueFilter, ValueOp

__all__ = [
    "Cell",
    "CellPredicate",
    "Column",
    "ColumnFamily",
    "ColumnType",
    "Database",
    "ExportFormat",
    "FilterCondition",
    "FilterOperator",
    "IgnoredFilter",
    "Row",
    "RowPredicate",
    "Table",
    "ValueFilter",
    "ValueOp",
]
