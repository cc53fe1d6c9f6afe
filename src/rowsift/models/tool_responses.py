"""Pydantic response models for Rowsift tools and routes."""

from __future__ import annotations

from typing import Any

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from .data_models import CamelModel, FilterCondition, IgnoredFilter, Row


class BaseToolResponse(BaseModel):
    """Base response model for all MCP tool operations."""

    success: bool = True


# =============================================================================
# EXPORT
# =============================================================================


class ExportResult(BaseModel):
    """Outcome of one export run: the rendered grid, its CSV text and diagnostics."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    table_id: int
    filename: str
    csv_text: str
    grid: pd.DataFrame
    rows_fetched: int = Field(description="Rows returned by the store for the fetch window")
    rows_exported: int
    ignored_filters: list[IgnoredFilter] = Field(default_factory=list)


class ExportCsvResult(BaseToolResponse):
    """Response model for the export_table_csv tool."""

    filename: str
    content: str
    rows_exported: int
    rows_fetched: int
    ignored_filters: list[IgnoredFilter] = Field(default_factory=list)


# =============================================================================
# FILTERED ROWS LISTING
# =============================================================================


class Pagination(CamelModel):
    """Page position within the pushdown-filtered row set."""

    page: int
    page_size: int
    total_rows: int
    total_pages: int
    has_next: bool
    has_prev: bool


class FilterSummary(CamelModel):
    """Filters that shaped a listing."""

    applied: bool
    global_search: str
    column_filters: list[FilterCondition]
    valid_filters_count: int
    ignored_filters: list[IgnoredFilter] = Field(default_factory=list)


class PerformanceInfo(CamelModel):
    """Row counts and timing of a listing."""

    query_time_ms: float
    filtered_rows: int
    original_table_size: int


class FilteredRowsResult(BaseToolResponse, CamelModel):
    """Response model for the filtered rows listing."""

    data: list[Row]
    pagination: Pagination
    filters: FilterSummary
    performance: PerformanceInfo

    def to_json_payload(self) -> dict[str, Any]:
        """camelCase JSON body as served by the HTTP route."""
        return self.model_dump(mode="json", by_alias=True, exclude={"success"})
