"""Export server for Rowsift using FastMCP server composition.

Provides the filtered CSV export and the paginated filtered-rows listing, both as MCP tools and as
plain HTTP endpoints registered on the main server with ``custom_route``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.dependencies import get_access_gate, get_clock, get_row_store
from ..core.settings import get_settings
from ..exceptions import InvalidParameterError, RowsiftError
from ..models.request_models import ExportParams, RowQueryParams
from ..models.tool_responses import ExportCsvResult, FilteredRowsResult
from ..services.export_service import ExportService, RowQueryService
from ..utils.logging_config import get_logger, set_correlation_id
from ..utils.pydantic_validators import parse_json_string_to_list

logger = get_logger(__name__)

IGNORED_FILTERS_HEADER = "X-Rowsift-Ignored-Filters"


def create_export_service() -> ExportService:
    return ExportService(get_row_store(), get_settings(), get_clock())


def create_row_query_service() -> RowQueryService:
    return RowQueryService(get_row_store(), get_settings(), get_clock())


def _tool_filters(filters: list[dict[str, Any]] | str | None) -> list[Any] | None:
    """Tool filters arrive as plain JSON, never URL-encoded like the query string."""
    if not isinstance(filters, str):
        return filters
    if not filters.strip():
        return None
    try:
        return parse_json_string_to_list(filters)
    except ValueError as e:
        logger.debug("Ignoring malformed filters argument: %s", e)
        return None


def _tool_query(**values: Any) -> dict[str, Any]:
    """Render tool arguments as the query values the HTTP routes receive.

    Lists are passed through as they are.
    """
    query: dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        elif isinstance(value, list):
            query[key] = value
        else:
            query[key] = str(value)
    return query


# ============================================================================
# MCP TOOLS
# ============================================================================


async def export_table_csv(
    ctx: Annotated[Context, Field(description="FastMCP context for progress reporting")],
    tenant_id: Annotated[int, Field(description="Tenant owning the database")],
    database_id: Annotated[int, Field(description="Database containing the table")],
    table_id: Annotated[int, Field(description="Table to export")],
    global_search: Annotated[
        str, Field(description="Free text matched against any cell of a row")
    ] = "",
    filters: Annotated[
        list[dict[str, Any]] | str | None,
        Field(
            description="Column filters: objects with columnId, columnName, columnType, "
            "operator, value and optional secondValue, or the same list as a JSON string"
        ),
    ] = None,
    limit: Annotated[int | None, Field(description="Maximum rows to export (1-100000)")] = None,
    export_format: Annotated[str, Field(description="Export format, only 'csv'")] = "csv",
) -> ExportCsvResult:
    """Export a table's rows as semicolon separated CSV after search and column filters.

    Filters that cannot be applied are skipped and listed in ``ignored_filters``.

    Example:
        export_table_csv(ctx, 1, 3, 7, filters=[{"columnId": 2, "columnName": "Age",
        "columnType": "number", "operator": "between", "value": 18, "secondValue": 30}])

    """
    try:
        await get_access_gate().authorize(tenant_id, table_id, {})
        params = ExportParams.from_query(
            _tool_query(
                globalSearch=global_search,
                filters=_tool_filters(filters),
                limit=limit,
                format=export_format,
            )
        )
        await ctx.info(f"Exporting table {table_id} with up to {params.limit} rows")
        result = await create_export_service().export_csv(
            tenant_id, database_id, table_id, params
        )
        if result.ignored_filters:
            await ctx.warning(f"{len(result.ignored_filters)} filter(s) were ignored")

        return ExportCsvResult(
            filename=result.filename,
            content=result.csv_text,
            rows_exported=result.rows_exported,
            rows_fetched=result.rows_fetched,
            ignored_filters=result.ignored_filters,
        )

    except RowsiftError as e:
        logger.warning("Export of table %s failed: %s", table_id, e.message)
        await ctx.error(e.message)
        raise ToolError(e.message) from e
    except Exception as e:
        logger.exception("Unexpected error exporting table %s", table_id)
        await ctx.error(f"Export failed: {e}")
        raise ToolError(f"Error: {e}") from e


async def get_filtered_rows(
    ctx: Annotated[Context, Field(description="FastMCP context for progress reporting")],
    tenant_id: Annotated[int, Field(description="Tenant owning the database")],
    database_id: Annotated[int, Field(description="Database containing the table")],
    table_id: Annotated[int, Field(description="Table to list")],
    page: Annotated[int, Field(description="1-based page number")] = 1,
    page_size: Annotated[int | None, Field(description="Rows per page (1-100)")] = None,
    include_cells: Annotated[bool, Field(description="Return the cells of each row")] = True,
    global_search: Annotated[
        str, Field(description="Free text matched against any cell of a row")
    ] = "",
    filters: Annotated[
        list[dict[str, Any]] | str | None,
        Field(description="Column filters, same shape as for export_table_csv"),
    ] = None,
    sort_by: Annotated[Literal["id", "createdAt"], Field(description="Sort field")] = "id",
    sort_order: Annotated[Literal["asc", "desc"], Field(description="Sort direction")] = "asc",
) -> FilteredRowsResult:
    """List one page of a table's rows after search and column filters.

    Returns pagination, the filters that were applied or ignored and timing information.
    """
    try:
        await get_access_gate().authorize(tenant_id, table_id, {})
        params = RowQueryParams.from_query(
            _tool_query(
                page=page,
                pageSize=page_size,
                includeCells=include_cells,
                globalSearch=global_search,
                filters=_tool_filters(filters),
                sortBy=sort_by,
                sortOrder=sort_order,
            )
        )
        result = await create_row_query_service().list_rows(
            tenant_id, database_id, table_id, params
        )
        await ctx.info(
            f"Listed {len(result.data)} of {result.pagination.total_rows} matching rows"
        )
        return result

    except RowsiftError as e:
        logger.warning("Listing of table %s failed: %s", table_id, e.message)
        await ctx.error(e.message)
        raise ToolError(e.message) from e
    except Exception as e:
        logger.exception("Unexpected error listing table %s", table_id)
        await ctx.error(f"Listing failed: {e}")
        raise ToolError(f"Error: {e}") from e


# ============================================================================
# HTTP ENDPOINTS
# ============================================================================


def _path_id(path_params: Mapping[str, Any], name: str) -> int:
    raw = path_params.get(name)
    try:
        return int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(name, raw, "Must be an integer") from e


def error_response(error: RowsiftError) -> JSONResponse:
    """JSON error body for a pipeline error."""
    body: dict[str, Any] = {"error": error.message}
    if error.status_code == 400:
        if error.details is not None:
            body["details"] = error.details
        body["code"] = error.code
    elif error.status_code >= 500:
        body = {"error": "Internal server error", "code": "INTERNAL_ERROR"}
    return JSONResponse(body, status_code=error.status_code)


def _internal_error() -> JSONResponse:
    return JSONResponse(
        {"error": "Internal server error", "code": "INTERNAL_ERROR"}, status_code=500
    )


async def export_rows_endpoint(request: Request) -> Response:
    """GET .../tables/{tableId}/rows/export"""
    set_correlation_id(request.headers.get("x-correlation-id"))
    try:
        tenant_id = _path_id(request.path_params, "tenantId")
        database_id = _path_id(request.path_params, "databaseId")
        table_id = _path_id(request.path_params, "tableId")

        await get_access_gate().authorize(tenant_id, table_id, request.headers)
        params = ExportParams.from_query(request.query_params)
        result = await create_export_service().export_csv(
            tenant_id, database_id, table_id, params
        )
    except RowsiftError as e:
        logger.info("Export request rejected", status=e.status_code, error=e.message)
        return error_response(e)
    except Exception:
        logger.exception("Export request failed")
        return _internal_error()

    return Response(
        content=result.csv_text,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "Cache-Control": "no-cache",
            IGNORED_FILTERS_HEADER: str(len(result.ignored_filters)),
        },
    )


async def filtered_rows_endpoint(request: Request) -> Response:
    """GET .../tables/{tableId}/rows/filtered"""
    set_correlation_id(request.headers.get("x-correlation-id"))
    try:
        tenant_id = _path_id(request.path_params, "tenantId")
        database_id = _path_id(request.path_params, "databaseId")
        table_id = _path_id(request.path_params, "tableId")

        await get_access_gate().authorize(tenant_id, table_id, request.headers)
        params = RowQueryParams.from_query(request.query_params)
        result = await create_row_query_service().list_rows(
            tenant_id, database_id, table_id, params
        )
    except RowsiftError as e:
        logger.info("Listing request rejected", status=e.status_code, error=e.message)
        return error_response(e)
    except Exception:
        logger.exception("Listing request failed")
        return _internal_error()

    return JSONResponse(
        result.to_json_payload(),
        headers={IGNORED_FILTERS_HEADER: str(len(result.filters.ignored_filters))},
    )


# ============================================================================
# FASTMCP SERVER SETUP
# ============================================================================

export_server = FastMCP(
    "Rowsift-Export",
    instructions="Filtered CSV export and paginated row listing for tenant tables",
)

export_server.tool(name="export_table_csv")(export_table_csv)
export_server.tool(name="get_filtered_rows")(get_filtered_rows)
