"""Render exported rows as semicolon-separated CSV text.

Output contract:

* columns ordered by ``Column.order``; the header is the column names joined by ``;``
* a missing cell is an empty field
* reference cells show the referenced row's primary value (raw id when unresolved)
* dates use ``date_format``; unparseable dates are left as stored
* booleans render as ✓ / ✗
* arrays are joined with ", " after dropping null and empty entries
* every text field is wrapped in double quotes; embedded quotes are not escaped
* rows are separated by ``\\n``
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import pandas as pd

from ..models.cell_values import (
    DateTimeValue,
    EmptyValue,
    StringListValue,
    format_scalar,
    typed_cell_value,
)
from ..models.data_models import Cell, Column, ColumnType, Row
from ..utils.validators import is_true
from .reference_resolver import ReferenceIndex, resolve_reference

FIELD_SEPARATOR = ";"
ROW_SEPARATOR = "\n"
CHECK_MARK = "✓"
CROSS_MARK = "✗"

DEFAULT_DATE_FORMAT = "%d.%m.%Y"


def _quote(text: str) -> str:
    # TODO: double embedded quotes once downstream importers stop relying on the raw form
    return f'"{text}"'


def _plain(raw: Any) -> str:
    if isinstance(raw, str):
        return _quote(raw)
    if isinstance(raw, dict):
        return _quote(json.dumps(raw, ensure_ascii=False))
    return format_scalar(raw)


def render_field(
    column: Column,
    cell: Cell | None,
    reference_index: ReferenceIndex,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> str:
    """Render one cell of ``column`` as a CSV field."""
    if cell is None:
        return ""
    if column.type == ColumnType.BOOLEAN:
        return _quote(CHECK_MARK if is_true(cell.value) else CROSS_MARK)
    if cell.value is None:
        return ""
    if column.type == ColumnType.REFERENCE and column.reference_table_id is not None:
        return _quote(resolve_reference(reference_index, column.reference_table_id, cell.value))

    typed = typed_cell_value(column, cell.value)
    if isinstance(typed, EmptyValue):
        return ""
    if isinstance(typed, StringListValue):
        return _quote(typed.as_text())
    if isinstance(typed, DateTimeValue):
        if typed.moment is None:
            return _plain(typed.raw)
        try:
            return _quote(typed.moment.strftime(date_format))
        except ValueError:
            return _plain(typed.raw)
    return _plain(typed.raw)


def sort_columns(columns: Sequence[Column]) -> list[Column]:
    """Columns in export order (ascending ``order``, stable for ties)."""
    return sorted(columns, key=lambda column: column.order)


def build_export_grid(
    rows: Sequence[Row],
    columns: Sequence[Column],
    reference_index: ReferenceIndex | None = None,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> pd.DataFrame:
    """Rendered (rows x columns) grid; DataFrame columns are the column names in export order."""
    index = reference_index or ReferenceIndex()
    ordered = sort_columns(columns)
    records = [
        [render_field(column, row.cell_for(column.id), index, date_format) for column in ordered]
        for row in rows
    ]
    return pd.DataFrame(records, columns=[column.name for column in ordered], dtype=object)


def grid_to_csv(grid: pd.DataFrame) -> str:
    """Join a rendered grid into CSV text, header first."""
    lines = [FIELD_SEPARATOR.join(str(name) for name in grid.columns)]
    lines.extend(FIELD_SEPARATOR.join(fields) for fields in grid.itertuples(index=False, name=None))
    return ROW_SEPARATOR.join(lines)


def serialize_csv(
    rows: Sequence[Row],
    columns: Sequence[Column],
    reference_index: ReferenceIndex | None = None,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> str:
    """Render ``rows`` as CSV text; see the module docstring for the field rules."""
    return grid_to_csv(build_export_grid(rows, columns, reference_index, date_format))
