"""Request parameter models for the export and filtered-rows operations.

Query strings arrive as plain strings. Parsing never rejects a request: unusable numbers fall
back to defaults and are clamped, malformed filters are dropped. Only the export format is
checked later, by the service.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field

from ..core.settings import RowsiftSettings, get_settings
from ..utils.pydantic_validators import parse_filters_param
from ..utils.validators import parse_int_prefix
from .data_models import ExportFormat, FilterCondition, IgnoredFilter


def clamp_int(raw: str | None, default: int, low: int, high: int) -> int:
    """Parse the leading integer of ``raw`` and clamp it to ``[low, high]``.

    Missing, empty or non-numeric input gives ``default``.
    """
    parsed = parse_int_prefix(raw)
    if parsed is None:
        return default
    return min(max(low, parsed), high)


def clamp_limit(raw: str | None, settings: RowsiftSettings | None = None) -> int:
    """Export row cap: "0" -> 1, "-5" -> 1, "999999999" -> 100000, missing -> 10000."""
    settings = settings or get_settings()
    return clamp_int(
        raw,
        settings.default_export_limit,
        settings.min_export_limit,
        settings.max_export_limit,
    )


class FilterParams(BaseModel):
    """Search and filter parameters shared by exports and listings."""

    global_search: str = Field(default="", description="Trimmed free-text search")
    filters: list[FilterCondition] = Field(default_factory=list)
    ignored_filters: list[IgnoredFilter] = Field(
        default_factory=list, description="Filter entries dropped while parsing"
    )

    @staticmethod
    def _filter_fields(query: Mapping[str, Any]) -> dict[str, Any]:
        filters, ignored = parse_filters_param(query.get("filters"))
        return {
            "global_search": (query.get("globalSearch") or "").strip(),
            "filters": filters,
            "ignored_filters": ignored,
        }


class ExportParams(FilterParams):
    """Parameters of a CSV export request."""

    export_format: str = Field(default=ExportFormat.CSV.value, description="Requested format")
    limit: int = Field(default=10_000, ge=1, description="Maximum number of exported rows")

    @classmethod
    def from_query(
        cls, query: Mapping[str, Any], settings: RowsiftSettings | None = None
    ) -> ExportParams:
        """Build export parameters from raw query-string values."""
        return cls(
            export_format=(query.get("format") or ExportFormat.CSV.value),
            limit=clamp_limit(query.get("limit"), settings),
            **cls._filter_fields(query),
        )


class RowQueryParams(FilterParams):
    """Parameters of a paginated filtered-rows request."""

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=25, ge=1)
    include_cells: bool = True
    sort_by: Literal["id", "createdAt"] = "id"
    sort_order: Literal["asc", "desc"] = "asc"

    @classmethod
    def from_query(
        cls, query: Mapping[str, Any], settings: RowsiftSettings | None = None
    ) -> RowQueryParams:
        """Build listing parameters from raw query-string values."""
        settings = settings or get_settings()
        sort_by = query.get("sortBy") or "id"
        sort_order = "desc" if query.get("sortOrder") == "desc" else "asc"
        if sort_by not in ("id", "createdAt"):
            # Unknown sort fields fall back to the default ordering
            sort_by, sort_order = "id", "asc"

        return cls(
            page=max(1, parse_int_prefix(query.get("page")) or 1),
            page_size=clamp_int(
                query.get("pageSize"), settings.default_page_size, 1, settings.max_page_size
            ),
            include_cells=query.get("includeCells") != "false",
            sort_by=sort_by,
            sort_order=sort_order,
            **cls._filter_fields(query),
        )
