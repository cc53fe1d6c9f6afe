"""Pushdown predicate tree handed to the row store.

A ``RowPredicate`` is the top-level AND of per-cell quantified predicates scoped to one table.
``to_where`` renders it in the store's where-clause shape, e.g.::

    {"tableId": 7, "AND": [{"cells": {"some": {"columnId": 3, "value": {"gte": 18.0, "lte": 30.0}}}}]}
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class ValueOp(str, Enum):
    """Comparisons the store evaluates against a stored JSON cell value."""

    EQUALS = "equals"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    RANGE = "range"
    NOT_NULL = "not_null"
    STRING_CONTAINS = "string_contains"
    STRING_MATCHES = "string_matches"


class ValueFilter(BaseModel):
    """Comparison applied to one cell value."""

    op: ValueOp
    operand: Any = None
    upper: Any = None
    case_insensitive: bool = False

    def to_where(self) -> dict[str, Any]:
        if self.op == ValueOp.RANGE:
            return {"gte": self.operand, "lte": self.upper}
        if self.op == ValueOp.NOT_NULL:
            return {"not": None}
        clause: dict[str, Any] = {self.op.value: self.operand}
        if self.op == ValueOp.STRING_CONTAINS and self.case_insensitive:
            clause["mode"] = "insensitive"
        return clause


class CellPredicate(BaseModel):
    """Quantified predicate over a row's cells.

    ``some`` holds when at least one cell matches, ``none`` when no cell does. A missing
    ``column_id`` matches cells of any column (used by global search).
    """

    quantifier: Literal["some", "none"]
    column_id: int | None = None
    value: ValueFilter

    def to_where(self) -> dict[str, Any]:
        inner: dict[str, Any] = {}
        if self.column_id is not None:
            inner["columnId"] = self.column_id
        inner["value"] = self.value.to_where()
        return {"cells": {self.quantifier: inner}}


class RowPredicate(BaseModel):
    """Top-level predicate: rows of ``table_id`` matching the search and every condition."""

    table_id: int
    search: CellPredicate | None = None
    conditions: list[CellPredicate] = Field(default_factory=list)

    @property
    def is_unfiltered(self) -> bool:
        return self.search is None and not self.conditions

    def to_where(self) -> dict[str, Any]:
        where: dict[str, Any] = {"tableId": self.table_id}
        if self.search is not None:
            where.update(self.search.to_where())
        if self.conditions:
            where["AND"] = [condition.to_where() for condition in self.conditions]
        return where


def some_cell(column_id: int | None, op: ValueOp, operand: Any = None, **kwargs: Any) -> CellPredicate:
    """Shortcut for a ``some`` predicate."""
    return CellPredicate(
        quantifier="some", column_id=column_id, value=ValueFilter(op=op, operand=operand, **kwargs)
    )


def no_cell(column_id: int | None, op: ValueOp, operand: Any = None, **kwargs: Any) -> CellPredicate:
    """Shortcut for a ``none`` predicate."""
    return CellPredicate(
        quantifier="none", column_id=column_id, value=ValueFilter(op=op, operand=operand, **kwargs)
    )
