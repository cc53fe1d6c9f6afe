"""Compile filter conditions and a global search term into a pushdown RowPredicate.

Operators are dispatched through a declarative ``column family -> operator -> compiler`` table.
A compiler returns None when its condition places no constraint on the rows (for instance an
equality filter with a blank operand), which the caller treats as "match all" for that condition.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field

from ..core.clock import Clock, SystemClock
from ..exceptions import MalformedFilterError
from ..models.data_models import (
    Column,
    ColumnFamily,
    FilterCondition,
    FilterOperator,
    IgnoredFilter,
)
from ..models.predicates import CellPredicate, RowPredicate, ValueOp, no_cell, some_cell
from ..utils.validators import is_blank, is_true, parse_date, parse_number
from .operator_table import check_condition

logger = logging.getLogger(__name__)

Op = FilterOperator
ConditionCompiler = Callable[[Column, FilterCondition, Clock], CellPredicate | None]

_ONE_TICK = timedelta(microseconds=1)


class CompiledQuery(BaseModel):
    """Compiled predicate, the conditions it was built from and the ones that were dropped."""

    predicate: RowPredicate
    accepted: list[FilterCondition] = Field(default_factory=list)
    ignored: list[IgnoredFilter] = Field(default_factory=list)


# ============================================================================
# RELATIVE DATE BUCKETS
# ============================================================================


def _start_of_day(moment: datetime) -> datetime:
    return datetime(moment.year, moment.month, moment.day)


def relative_date_range(operator: FilterOperator, now: datetime) -> tuple[datetime, datetime]:
    """Inclusive ``[start, end]`` bounds of a relative date bucket around ``now``.

    Weeks start on Sunday. ``end`` is the last microsecond inside the bucket.
    """
    today = _start_of_day(now)
    if operator == Op.TODAY:
        start, next_start = today, today + timedelta(days=1)
    elif operator == Op.YESTERDAY:
        start, next_start = today - timedelta(days=1), today
    elif operator == Op.THIS_WEEK:
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        next_start = start + timedelta(days=7)
    elif operator == Op.THIS_MONTH:
        start = today.replace(day=1)
        if start.month == 12:
            next_start = start.replace(year=start.year + 1, month=1)
        else:
            next_start = start.replace(month=start.month + 1)
    elif operator == Op.THIS_YEAR:
        start = today.replace(month=1, day=1)
        next_start = start.replace(year=start.year + 1)
    else:
        msg = f"{operator.value} is not a relative date operator"
        raise ValueError(msg)
    return start, next_start - _ONE_TICK


# ============================================================================
# CONDITION COMPILERS
# ============================================================================


def _equality_operand(column: Column, value: Any) -> Any | None:
    family = column.family
    if family == ColumnFamily.NUMBER:
        return parse_number(value)
    if family == ColumnFamily.BOOLEAN:
        return None if is_blank(value) else is_true(value)
    if family == ColumnFamily.DATE:
        return parse_date(value)
    return None if is_blank(value) else str(value).strip()


def _equals(column: Column, condition: FilterCondition, clock: Clock) -> CellPredicate | None:
    operand = _equality_operand(column, condition.value)
    if operand is None:
        return None
    return some_cell(column.id, ValueOp.EQUALS, operand)


def _not_equals(column: Column, condition: FilterCondition, clock: Clock) -> CellPredicate | None:
    operand = _equality_operand(column, condition.value)
    if operand is None:
        return None
    return no_cell(column.id, ValueOp.EQUALS, operand)


def _number_comparison(op: ValueOp) -> ConditionCompiler:
    def compile_comparison(
        column: Column, condition: FilterCondition, clock: Clock
    ) -> CellPredicate | None:
        return some_cell(column.id, op, parse_number(condition.value))

    return compile_comparison


def _date_comparison(op: ValueOp) -> ConditionCompiler:
    def compile_comparison(
        column: Column, condition: FilterCondition, clock: Clock
    ) -> CellPredicate | None:
        return some_cell(column.id, op, parse_date(condition.value))

    return compile_comparison


def _range(inside: bool) -> ConditionCompiler:
    def compile_range(
        column: Column, condition: FilterCondition, clock: Clock
    ) -> CellPredicate | None:
        parse = parse_number if column.family == ColumnFamily.NUMBER else parse_date
        lower, upper = parse(condition.value), parse(condition.second_value)
        build = some_cell if inside else no_cell
        return build(column.id, ValueOp.RANGE, lower, upper=upper)

    return compile_range


def _relative_bucket(column: Column, condition: FilterCondition, clock: Clock) -> CellPredicate | None:
    start, end = relative_date_range(FilterOperator(condition.operator), clock.now())
    return some_cell(column.id, ValueOp.RANGE, start, upper=end)


def _is_empty(column: Column, condition: FilterCondition, clock: Clock) -> CellPredicate | None:
    return no_cell(column.id, ValueOp.NOT_NULL)


def _is_not_empty(column: Column, condition: FilterCondition, clock: Clock) -> CellPredicate | None:
    return some_cell(column.id, ValueOp.NOT_NULL)


def _has_value(column: Column, condition: FilterCondition, clock: Clock) -> CellPredicate | None:
    # Weak pushdown: pattern matching happens in the fallback string filter
    if is_blank(condition.value):
        return None
    return some_cell(column.id, ValueOp.NOT_NULL)


def _regex(column: Column, condition: FilterCondition, clock: Clock) -> CellPredicate | None:
    if not isinstance(condition.value, str):
        return None
    return some_cell(column.id, ValueOp.STRING_MATCHES, condition.value.strip())


_COMMON: dict[FilterOperator, ConditionCompiler] = {
    Op.EQUALS: _equals,
    Op.NOT_EQUALS: _not_equals,
    Op.IS_EMPTY: _is_empty,
    Op.IS_NOT_EMPTY: _is_not_empty,
}

CONDITION_COMPILERS: dict[ColumnFamily, dict[FilterOperator, ConditionCompiler]] = {
    ColumnFamily.TEXT: {
        **_COMMON,
        Op.CONTAINS: _has_value,
        Op.NOT_CONTAINS: _has_value,
        Op.STARTS_WITH: _has_value,
        Op.ENDS_WITH: _has_value,
        Op.REGEX: _regex,
    },
    ColumnFamily.NUMBER: {
        **_COMMON,
        Op.GREATER_THAN: _number_comparison(ValueOp.GT),
        Op.GREATER_THAN_OR_EQUAL: _number_comparison(ValueOp.GTE),
        Op.LESS_THAN: _number_comparison(ValueOp.LT),
        Op.LESS_THAN_OR_EQUAL: _number_comparison(ValueOp.LTE),
        Op.BETWEEN: _range(inside=True),
        Op.NOT_BETWEEN: _range(inside=False),
    },
    ColumnFamily.BOOLEAN: dict(_COMMON),
    ColumnFamily.DATE: {
        **_COMMON,
        Op.BEFORE: _date_comparison(ValueOp.LT),
        Op.AFTER: _date_comparison(ValueOp.GT),
        Op.BETWEEN: _range(inside=True),
        Op.NOT_BETWEEN: _range(inside=False),
        Op.TODAY: _relative_bucket,
        Op.YESTERDAY: _relative_bucket,
        Op.THIS_WEEK: _relative_bucket,
        Op.THIS_MONTH: _relative_bucket,
        Op.THIS_YEAR: _relative_bucket,
    },
    ColumnFamily.OPAQUE: dict(_COMMON),
}


# ============================================================================
# ENTRY POINT
# ============================================================================


def compile_condition(
    condition: FilterCondition, columns_by_id: dict[int, Column], clock: Clock
) -> CellPredicate | None:
    """Compile one condition; None means it places no constraint on the rows.

    Raises:
        MalformedFilterError: If the condition cannot be applied to its column

    """
    reason = check_condition(condition, columns_by_id)
    if reason is not None:
        raise MalformedFilterError(reason)
    column = columns_by_id[condition.column_id]
    compiler = CONDITION_COMPILERS[column.family][FilterOperator(condition.operator)]
    return compiler(column, condition, clock)


def compile_predicate(
    table_id: int,
    columns: Sequence[Column],
    conditions: Sequence[FilterCondition],
    global_search: str = "",
    *,
    clock: Clock | None = None,
    case_insensitive_search: bool = False,
) -> CompiledQuery:
    """Build the pushdown predicate for ``table_id``.

    Args:
        table_id: Table whose rows are queried
        columns: Column definitions of that table
        conditions: Filter conditions from the request, in any state of validity
        global_search: Free text that some cell of the row must contain (already trimmed)
        clock: Time source for relative date buckets, defaults to the system clock
        case_insensitive_search: Match ``global_search`` ignoring case

    Returns:
        CompiledQuery with the predicate and the conditions that were dropped

    """
    clock = clock or SystemClock()
    columns_by_id = {column.id: column for column in columns}
    predicate = RowPredicate(table_id=table_id)
    accepted: list[FilterCondition] = []
    ignored: list[IgnoredFilter] = []

    term = global_search.strip()
    if term:
        predicate.search = some_cell(
            None, ValueOp.STRING_CONTAINS, term, case_insensitive=case_insensitive_search
        )

    for condition in conditions:
        try:
            leaf = compile_condition(condition, columns_by_id, clock)
        except MalformedFilterError as e:
            logger.debug("Dropping filter on column %s: %s", condition.column_id, e.message)
            ignored.append(
                IgnoredFilter(condition=condition.model_dump(by_alias=True), reason=e.message)
            )
            continue

        accepted.append(condition)
        if leaf is not None:
            predicate.conditions.append(leaf)

    return CompiledQuery(predicate=predicate, accepted=accepted, ignored=ignored)
