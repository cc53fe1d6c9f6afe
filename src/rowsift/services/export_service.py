"""Export and listing services.

Both services run the same chain per request: resolve the table, compile the pushdown predicate,
fetch from the store, then apply the in-memory string filter. The export additionally resolves
references and renders CSV. Services hold no per-request state; the store, settings and clock are
injected so tests can swap them.
"""

from __future__ import annotations

import json
import logging
import math
import time
from datetime import datetime

from ..core.clock import Clock, SystemClock
from ..core.settings import RowsiftSettings, get_settings
from ..exceptions import DatabaseNotFoundError, InvalidParameterError, TableNotFoundError
from ..models.data_models import Column, ExportFormat, Row
from ..models.predicates import RowPredicate
from ..models.request_models import ExportParams, FilterParams, RowQueryParams
from ..models.tool_responses import (
    ExportResult,
    FilteredRowsResult,
    FilterSummary,
    Pagination,
    PerformanceInfo,
)
from .csv_serializer import build_export_grid, grid_to_csv
from .fallback_filter import apply_string_filters, string_filters_for
from .predicate_compiler import CompiledQuery, compile_predicate
from .reference_resolver import build_reference_index
from .row_fetcher import fetch_rows
from .row_store import RowStore

logger = logging.getLogger(__name__)


def export_filename(table_id: int, moment: datetime) -> str:
    """Attachment filename, e.g. ``table_7_export_2024-03-05.csv``."""
    return f"table_{table_id}_export_{moment:%Y-%m-%d}.csv"


class TableService:
    """Base service for read operations on one table of a tenant database."""

    def __init__(
        self,
        store: RowStore,
        settings: RowsiftSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize with injected store, settings and clock."""
        self.store = store
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock()

    async def get_table_columns(
        self, tenant_id: int, database_id: int, table_id: int
    ) -> list[Column]:
        """Check the database and table exist and return the table's columns.

        Raises:
            DatabaseNotFoundError: If the database is missing or belongs to another tenant
            TableNotFoundError: If the table is missing from the database

        """
        if await self.store.find_database(database_id, tenant_id) is None:
            raise DatabaseNotFoundError(database_id)
        if await self.store.find_table(table_id, database_id) is None:
            raise TableNotFoundError(table_id)
        return await self.store.find_columns(table_id)

    def compile(self, table_id: int, columns: list[Column], params: FilterParams) -> CompiledQuery:
        """Compile the request's search and filters for ``table_id``."""
        compiled = compile_predicate(
            table_id,
            columns,
            params.filters,
            params.global_search,
            clock=self.clock,
            case_insensitive_search=self.settings.global_search_case_insensitive,
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Compiled where clause for table %s: %s",
                table_id,
                json.dumps(compiled.predicate.to_where(), default=str),
            )
        return compiled


class ExportService(TableService):
    """CSV export of a filtered table."""

    async def export_csv(
        self, tenant_id: int, database_id: int, table_id: int, params: ExportParams
    ) -> ExportResult:
        """Export the rows of a table matching ``params`` as CSV.

        Returns:
            ExportResult with the CSV text, the rendered grid and the ignored filters

        Raises:
            DatabaseNotFoundError, TableNotFoundError: If the table cannot be found
            InvalidParameterError: If a format other than CSV is requested

        """
        columns = await self.get_table_columns(tenant_id, database_id, table_id)

        if params.export_format != ExportFormat.CSV.value:
            raise InvalidParameterError(
                "format", params.export_format, "Only CSV format is supported"
            )

        compiled = self.compile(table_id, columns, params)

        # Over-fetch only helps when the fallback pass will drop rows
        string_filters = string_filters_for(params.filters, columns, include_references=True)
        over_fetch = 1.0
        if string_filters:
            over_fetch = self.settings.fallback_over_fetch_factor

        rows = await fetch_rows(
            self.store,
            compiled.predicate,
            params.limit,
            over_fetch_factor=over_fetch,
            max_window=self.settings.max_export_limit,
        )
        kept = apply_string_filters(rows, params.filters, columns, include_references=True)
        kept = kept[: params.limit]

        reference_index = await build_reference_index(self.store, columns)
        grid = build_export_grid(kept, columns, reference_index, self.settings.date_display_format)
        # Pattern filters on reference columns are dropped by the compiler but applied above
        applied = [condition.model_dump(by_alias=True) for condition, _ in string_filters]
        ignored = [
            *params.ignored_filters,
            *(entry for entry in compiled.ignored if entry.condition not in applied),
        ]

        logger.info(
            "Exported table %s: %d rows fetched, %d exported, %d filters ignored",
            table_id,
            len(rows),
            len(kept),
            len(ignored),
        )
        return ExportResult(
            table_id=table_id,
            filename=export_filename(table_id, self.clock.now()),
            csv_text=grid_to_csv(grid),
            grid=grid,
            rows_fetched=len(rows),
            rows_exported=len(kept),
            ignored_filters=ignored,
        )


def _sort_cells(row: Row, column_order: dict[int, int]) -> Row:
    fallback = len(column_order)
    row.cells.sort(key=lambda cell: column_order.get(cell.column_id, fallback))
    return row


class RowQueryService(TableService):
    """Paginated listing of filtered rows."""

    async def list_rows(
        self, tenant_id: int, database_id: int, table_id: int, params: RowQueryParams
    ) -> FilteredRowsResult:
        """Return one page of rows matching ``params``.

        ``totalRows`` counts pushdown matches; the string fallback only thins the current page.
        """
        started = time.perf_counter()
        columns = await self.get_table_columns(tenant_id, database_id, table_id)
        compiled = self.compile(table_id, columns, params)
        predicate = compiled.predicate

        total_rows = await self.store.count_rows(predicate)
        # Cells are always fetched: the string fallback needs them even when the caller does not
        rows = await self.store.find_rows(
            predicate,
            take=params.page_size,
            skip=(params.page - 1) * params.page_size,
            order_by=params.sort_by,
            descending=params.sort_order == "desc",
        )
        rows = apply_string_filters(rows, params.filters, columns, include_references=False)

        if params.include_cells:
            column_order = {column.id: position for position, column in enumerate(columns)}
            rows = [_sort_cells(row, column_order) for row in rows]
        else:
            rows = [row.model_copy(update={"cells": []}) for row in rows]

        total_pages = math.ceil(total_rows / params.page_size)
        original_size = await self.store.count_rows(RowPredicate(table_id=table_id))

        return FilteredRowsResult(
            data=rows,
            pagination=Pagination(
                page=params.page,
                page_size=params.page_size,
                total_rows=total_rows,
                total_pages=total_pages,
                has_next=params.page < total_pages,
                has_prev=params.page > 1,
            ),
            filters=FilterSummary(
                applied=bool(params.filters) or params.global_search != "",
                global_search=params.global_search,
                column_filters=params.filters,
                valid_filters_count=len(compiled.accepted),
                ignored_filters=[*params.ignored_filters, *compiled.ignored],
            ),
            performance=PerformanceInfo(
                query_time_ms=round((time.perf_counter() - started) * 1000, 3),
                filtered_rows=total_rows,
                original_table_size=original_size,
            ),
        )
