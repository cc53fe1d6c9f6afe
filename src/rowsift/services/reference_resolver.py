"""Resolve reference cells to the display value of the referenced row.

The display value of a row is the value of its primary cell. An index over every table referenced
by the exported columns is built once per export and thrown away with the response.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from ..models.cell_values import format_scalar
from ..models.data_models import Column, ColumnType, Table
from .row_store import RowStore

logger = logging.getLogger(__name__)

ReferenceKey = tuple[int, str]


class ReferenceIndex:
    """Lookup of ``(target_table_id, target_row_id) -> display value``.

    Row ids are keyed by their string form so that ids stored as ``5`` and ``"5"`` resolve alike.
    """

    def __init__(self, entries: dict[ReferenceKey, Any] | None = None) -> None:
        self._entries: dict[ReferenceKey, Any] = dict(entries or {})

    @staticmethod
    def key(table_id: int, row_id: Any) -> ReferenceKey:
        return (int(table_id), format_scalar(row_id))

    @classmethod
    def from_tables(cls, tables: Iterable[Table]) -> ReferenceIndex:
        """Index the primary cell of every row of ``tables``."""
        entries: dict[ReferenceKey, Any] = {}
        for table in tables:
            primary = table.primary_column
            if primary is None:
                logger.warning("Referenced table %s has no primary column", table.id)
                continue
            for row in table.rows:
                cell = row.cell_for(primary.id)
                if cell is not None:
                    entries[cls.key(table.id, row.id)] = cell.value
        return cls(entries)

    def get(self, table_id: int, row_id: Any) -> Any:
        return self._entries.get(self.key(table_id, row_id))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def referenced_table_ids(columns: Sequence[Column]) -> list[int]:
    """Distinct target tables of the reference columns, in column order."""
    table_ids: list[int] = []
    for column in columns:
        if column.type == ColumnType.REFERENCE and column.reference_table_id is not None:
            if column.reference_table_id not in table_ids:
                table_ids.append(column.reference_table_id)
    return table_ids


async def build_reference_index(store: RowStore, columns: Sequence[Column]) -> ReferenceIndex:
    """Bulk-load every table referenced by ``columns`` and index their primary cells."""
    table_ids = referenced_table_ids(columns)
    if not table_ids:
        return ReferenceIndex()
    tables = await store.find_tables(table_ids)
    index = ReferenceIndex.from_tables(tables)
    logger.debug("Indexed %d reference targets from tables %s", len(index), table_ids)
    return index


def _resolve_one(index: ReferenceIndex, table_id: int, raw: Any) -> str:
    display = index.get(table_id, raw)
    # Blank display values fall back to the raw id
    if display is None or display == "":
        return format_scalar(raw)
    return format_scalar(display)


def resolve_reference(index: ReferenceIndex, target_table_id: int, raw_value: Any) -> str:
    """Display text for a reference cell.

    Arrays drop null and empty entries, resolve each id and join with ", ". Ids missing from
    the index come back unchanged. Null and empty scalars resolve to "".
    """
    if isinstance(raw_value, list):
        return ", ".join(
            _resolve_one(index, target_table_id, item)
            for item in raw_value
            if item is not None and item != ""
        )
    if raw_value is None or raw_value == "":
        return ""
    return _resolve_one(index, target_table_id, raw_value)
