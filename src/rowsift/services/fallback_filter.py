"""In-memory second pass for pattern operators the store cannot evaluate on JSON cells.

This runs on the rows already returned by the capped fetch. It can only drop rows, so a filtered
result may hold fewer rows than the requested limit even when more matches exist in the table.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..models.cell_values import StringListValue, format_scalar
from ..models.data_models import Column, ColumnFamily, ColumnType, FilterCondition, FilterOperator, Row
from ..utils.validators import is_blank
from .operator_table import STRING_FALLBACK_OPERATORS, to_operator


def _cell_text(value: Any) -> str:
    if isinstance(value, list):
        return StringListValue(items=value).as_text()
    return format_scalar(value)


def _text_matches(operator: FilterOperator, cell_text: str, needle: str) -> bool:
    haystack = cell_text.lower()
    needle = needle.lower()
    if operator == FilterOperator.STARTS_WITH:
        return haystack.startswith(needle)
    if operator == FilterOperator.ENDS_WITH:
        return haystack.endswith(needle)
    if operator == FilterOperator.CONTAINS:
        return needle in haystack
    return needle not in haystack


def string_filters_for(
    conditions: Sequence[FilterCondition],
    columns: Sequence[Column],
    *,
    include_references: bool = True,
) -> list[tuple[FilterCondition, FilterOperator]]:
    """Select the conditions the fallback pass must evaluate."""
    columns_by_id = {column.id: column for column in columns}
    selected = []
    for condition in conditions:
        column = columns_by_id.get(condition.column_id)
        operator = to_operator(condition.operator)
        if column is None or operator not in STRING_FALLBACK_OPERATORS:
            continue
        if is_blank(condition.value):
            continue
        is_textual = column.family == ColumnFamily.TEXT
        is_reference = include_references and column.type == ColumnType.REFERENCE
        if is_textual or is_reference:
            selected.append((condition, operator))
    return selected


def apply_string_filters(
    rows: Sequence[Row],
    conditions: Sequence[FilterCondition],
    columns: Sequence[Column],
    *,
    include_references: bool = True,
) -> list[Row]:
    """Keep the rows that satisfy every starts_with/ends_with/contains/not_contains condition.

    A row fails a condition when it has no cell for the column or the cell's text (array values
    joined with ", ") is blank. Matching is case-insensitive. ``include_references`` also
    applies the pass to reference columns, as exports do.
    """
    string_filters = string_filters_for(
        conditions, columns, include_references=include_references
    )
    if not string_filters:
        return list(rows)

    def keep(row: Row) -> bool:
        for condition, operator in string_filters:
            cell = row.cell_for(condition.column_id)
            if cell is None:
                return False
            cell_text = _cell_text(cell.value)
            if not cell_text.strip():
                return False
            if not _text_matches(operator, cell_text, format_scalar(condition.value)):
                return False
        return True

    return [row for row in rows if keep(row)]
