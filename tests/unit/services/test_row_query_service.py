"""Tests for the paginated filtered-rows listing."""

from __future__ import annotations

import json

import pytest

from rowsift.exceptions import TableNotFoundError
from rowsift.models.request_models import RowQueryParams
from rowsift.models.tool_responses import FilteredRowsResult
from rowsift.services.export_service import RowQueryService
from tests.factories import DATABASE_ID, PEOPLE_TABLE_ID, TENANT_ID

NAME_CONTAINS_A = {
    "columnId": 1,
    "columnName": "Name",
    "columnType": "string",
    "operator": "contains",
    "value": "a",
}


async def list_rows(service: RowQueryService, **query: str) -> FilteredRowsResult:
    return await service.list_rows(
        TENANT_ID, DATABASE_ID, PEOPLE_TABLE_ID, RowQueryParams.from_query(query)
    )


class TestRowQueryService:
    async def test_first_page(self, row_query_service: RowQueryService) -> None:
        result = await list_rows(row_query_service, pageSize="3")
        assert [row.id for row in result.data] == [1, 2, 3]
        assert result.pagination.total_rows == 4
        assert result.pagination.total_pages == 2
        assert result.pagination.has_next is True
        assert result.pagination.has_prev is False
        assert result.performance.original_table_size == 4
        assert result.filters.applied is False

    async def test_last_page(self, row_query_service: RowQueryService) -> None:
        result = await list_rows(row_query_service, page="2", pageSize="3")
        assert [row.id for row in result.data] == [4]
        assert result.pagination.has_next is False
        assert result.pagination.has_prev is True

    async def test_sorting_by_created_at(self, row_query_service: RowQueryService) -> None:
        result = await list_rows(row_query_service, sortBy="createdAt", sortOrder="desc")
        assert [row.id for row in result.data] == [4, 3, 2, 1]

    async def test_cells_follow_column_order(self, row_query_service: RowQueryService) -> None:
        result = await list_rows(row_query_service)
        assert [cell.column_id for cell in result.data[0].cells] == [1, 2, 3, 4, 5, 6]

    async def test_without_cells(self, row_query_service: RowQueryService) -> None:
        result = await list_rows(
            row_query_service, includeCells="false", filters=json.dumps([NAME_CONTAINS_A])
        )
        assert [row.id for row in result.data] == [1, 3, 4]
        assert all(row.cells == [] for row in result.data)

    async def test_fallback_thins_page_but_not_total(
        self, row_query_service: RowQueryService
    ) -> None:
        result = await list_rows(row_query_service, filters=json.dumps([NAME_CONTAINS_A]))
        assert [row.id for row in result.data] == [1, 3, 4]
        assert result.pagination.total_rows == 4
        assert result.filters.applied is True
        assert result.filters.valid_filters_count == 1

    async def test_reference_patterns_are_not_applied(
        self, row_query_service: RowQueryService
    ) -> None:
        company = {**NAME_CONTAINS_A, "columnId": 5, "columnType": "reference", "value": "999"}
        result = await list_rows(row_query_service, filters=json.dumps([company]))
        assert len(result.data) == 4
        assert len(result.filters.ignored_filters) == 1

    async def test_pushdown_filter_counts(self, row_query_service: RowQueryService) -> None:
        between = {
            "columnId": 2,
            "columnName": "Age",
            "columnType": "number",
            "operator": "between",
            "value": 18,
            "secondValue": 30,
        }
        result = await list_rows(row_query_service, filters=json.dumps([between]))
        assert result.pagination.total_rows == 2
        assert result.performance.filtered_rows == 2
        assert result.performance.original_table_size == 4

    async def test_json_payload_is_camel_case(self, row_query_service: RowQueryService) -> None:
        result = await list_rows(row_query_service, globalSearch="Bob")
        payload = result.to_json_payload()
        assert set(payload) == {"data", "pagination", "filters", "performance"}
        assert payload["pagination"]["totalRows"] == 1
        assert payload["filters"]["globalSearch"] == "Bob"
        assert payload["data"][0]["cells"][0] == {"columnId": 1, "value": "Bob"}
        assert "queryTimeMs" in payload["performance"]

    async def test_missing_table(self, row_query_service: RowQueryService) -> None:
        with pytest.raises(TableNotFoundError):
            await row_query_service.list_rows(
                TENANT_ID, DATABASE_ID, 404, RowQueryParams.from_query({})
            )
