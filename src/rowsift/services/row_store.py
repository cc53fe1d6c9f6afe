"""Row/cell store interface and the in-memory reference implementation.

The pipeline only reads from the store. ``RowStore`` lists the read operations it relies on;
``InMemoryRowStore`` evaluates ``RowPredicate`` trees directly against held rows and backs the
test suite and local runs.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, Literal, Protocol

from ..models.cell_values import format_scalar
from ..models.data_models import Column, Database, Row, Table
from ..models.predicates import CellPredicate, RowPredicate, ValueFilter, ValueOp
from ..utils.validators import parse_date, parse_number

SortField = Literal["id", "createdAt"]


class RowStore(Protocol):
    """Read operations the export and listing pipelines consume."""

    async def find_database(self, database_id: int, tenant_id: int) -> Database | None:
        """Return the database if it exists and belongs to the tenant."""
        ...

    async def find_table(self, table_id: int, database_id: int) -> Table | None:
        """Return the table (without rows) if it belongs to the database."""
        ...

    async def find_columns(self, table_id: int) -> list[Column]:
        """Return the table's columns ordered by ``order``."""
        ...

    async def find_rows(
        self,
        predicate: RowPredicate,
        *,
        take: int,
        skip: int = 0,
        order_by: SortField = "id",
        descending: bool = False,
        include_cells: bool = True,
    ) -> list[Row]:
        """Return at most ``take`` matching rows with their cells."""
        ...

    async def count_rows(self, predicate: RowPredicate) -> int:
        """Count rows matching ``predicate``."""
        ...

    async def find_tables(self, table_ids: Sequence[int]) -> list[Table]:
        """Bulk-load tables with their columns, rows and cells."""
        ...


# ============================================================================
# PREDICATE EVALUATION
# ============================================================================


def _coerce(value: Any, operand: Any) -> Any:
    """Convert a stored JSON value to the operand's type, or None when it cannot be."""
    if value is None or isinstance(value, list | dict):
        return None
    if isinstance(operand, bool):
        if isinstance(value, bool):
            return value
        return {"true": True, "false": False}.get(value) if isinstance(value, str) else None
    if isinstance(operand, float):
        return parse_number(value)
    if isinstance(operand, datetime):
        return parse_date(value)
    return format_scalar(value)


def value_matches(value_filter: ValueFilter, value: Any) -> bool:
    """Evaluate one ValueFilter against a stored cell value."""
    op = value_filter.op
    if op == ValueOp.NOT_NULL:
        return value is not None

    if op in (ValueOp.STRING_CONTAINS, ValueOp.STRING_MATCHES):
        if not isinstance(value, str):
            return False
        if op == ValueOp.STRING_MATCHES:
            return re.search(value_filter.operand, value) is not None
        if value_filter.case_insensitive:
            return value_filter.operand.lower() in value.lower()
        return value_filter.operand in value

    coerced = _coerce(value, value_filter.operand)
    if coerced is None:
        return False
    operand = value_filter.operand
    if op == ValueOp.EQUALS:
        return coerced == operand
    if op == ValueOp.GT:
        return coerced > operand
    if op == ValueOp.GTE:
        return coerced >= operand
    if op == ValueOp.LT:
        return coerced < operand
    if op == ValueOp.LTE:
        return coerced <= operand
    if op == ValueOp.RANGE:
        return operand <= coerced <= value_filter.upper
    msg = f"Unsupported value operation: {op}"
    raise ValueError(msg)


def cell_predicate_matches(predicate: CellPredicate, row: Row) -> bool:
    """Evaluate a some/none cell predicate against a row."""
    hit = any(
        (predicate.column_id is None or cell.column_id == predicate.column_id)
        and value_matches(predicate.value, cell.value)
        for cell in row.cells
    )
    return hit if predicate.quantifier == "some" else not hit


def row_matches(predicate: RowPredicate, table_id: int, row: Row) -> bool:
    """Evaluate a full RowPredicate against a row of ``table_id``."""
    if predicate.table_id != table_id:
        return False
    if predicate.search is not None and not cell_predicate_matches(predicate.search, row):
        return False
    return all(cell_predicate_matches(condition, row) for condition in predicate.conditions)


# ============================================================================
# IN-MEMORY STORE
# ============================================================================


class InMemoryRowStore:
    """RowStore over tables held in memory.

    Every read returns deep copies so callers can reorder or annotate results freely.
    """

    def __init__(
        self, databases: Iterable[Database] = (), tables: Iterable[Table] = ()
    ) -> None:
        self._lock = threading.Lock()
        self._databases: dict[int, Database] = {db.id: db for db in databases}
        self._tables: dict[int, Table] = {table.id: table for table in tables}

    def add_database(self, database: Database) -> None:
        with self._lock:
            self._databases[database.id] = database

    def add_table(self, table: Table) -> None:
        with self._lock:
            self._tables[table.id] = table

    async def find_database(self, database_id: int, tenant_id: int) -> Database | None:
        database = self._databases.get(database_id)
        if database is None or database.tenant_id != tenant_id:
            return None
        return database.model_copy(deep=True)

    async def find_table(self, table_id: int, database_id: int) -> Table | None:
        table = self._tables.get(table_id)
        if table is None or table.database_id != database_id:
            return None
        return table.model_copy(update={"rows": []}, deep=True)

    async def find_columns(self, table_id: int) -> list[Column]:
        table = self._tables.get(table_id)
        if table is None:
            return []
        return [col.model_copy(deep=True) for col in sorted(table.columns, key=lambda c: c.order)]

    def _matching_rows(self, predicate: RowPredicate) -> list[Row]:
        table = self._tables.get(predicate.table_id)
        if table is None:
            return []
        return [row for row in table.rows if row_matches(predicate, table.id, row)]

    async def find_rows(
        self,
        predicate: RowPredicate,
        *,
        take: int,
        skip: int = 0,
        order_by: SortField = "id",
        descending: bool = False,
        include_cells: bool = True,
    ) -> list[Row]:
        rows = self._matching_rows(predicate)
        if order_by == "createdAt":
            rows.sort(key=lambda r: (r.created_at is not None, r.created_at or datetime.min, r.id))
        else:
            rows.sort(key=lambda r: r.id)
        if descending:
            rows.reverse()

        page = rows[skip : skip + take]
        if include_cells:
            return [row.model_copy(deep=True) for row in page]
        return [row.model_copy(update={"cells": []}, deep=True) for row in page]

    async def count_rows(self, predicate: RowPredicate) -> int:
        return len(self._matching_rows(predicate))

    async def find_tables(self, table_ids: Sequence[int]) -> list[Table]:
        wanted = set(table_ids)
        return [
            table.model_copy(deep=True) for table_id, table in self._tables.items() if table_id in wanted
        ]
