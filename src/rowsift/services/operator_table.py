"""Operator/type compatibility table.

Declares which filter operators each column family accepts and which operand shapes they need.
Conditions that fail either check are dropped by the compiler rather than raising.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from ..models.data_models import Column, ColumnFamily, FilterCondition, FilterOperator, column_family
from ..utils.validators import parse_date, parse_number

Op = FilterOperator

NO_VALUE_OPERATORS: frozenset[FilterOperator] = frozenset(
    {Op.IS_EMPTY, Op.IS_NOT_EMPTY, Op.TODAY, Op.YESTERDAY, Op.THIS_WEEK, Op.THIS_MONTH, Op.THIS_YEAR}
)
RANGE_OPERATORS: frozenset[FilterOperator] = frozenset({Op.BETWEEN, Op.NOT_BETWEEN})

# Pattern operators the store cannot match on JSON payloads; applied after fetch
STRING_FALLBACK_OPERATORS: frozenset[FilterOperator] = frozenset(
    {Op.STARTS_WITH, Op.ENDS_WITH, Op.CONTAINS, Op.NOT_CONTAINS}
)

_EMPTINESS = frozenset({Op.IS_EMPTY, Op.IS_NOT_EMPTY})
_EQUALITY = frozenset({Op.EQUALS, Op.NOT_EQUALS})

OPERATORS_BY_FAMILY: dict[ColumnFamily, frozenset[FilterOperator]] = {
    ColumnFamily.TEXT: _EQUALITY
    | _EMPTINESS
    | {Op.CONTAINS, Op.NOT_CONTAINS, Op.STARTS_WITH, Op.ENDS_WITH, Op.REGEX},
    ColumnFamily.NUMBER: _EQUALITY
    | _EMPTINESS
    | RANGE_OPERATORS
    | {Op.GREATER_THAN, Op.GREATER_THAN_OR_EQUAL, Op.LESS_THAN, Op.LESS_THAN_OR_EQUAL},
    ColumnFamily.BOOLEAN: _EQUALITY | _EMPTINESS,
    ColumnFamily.DATE: _EQUALITY
    | _EMPTINESS
    | RANGE_OPERATORS
    | {Op.BEFORE, Op.AFTER, Op.TODAY, Op.YESTERDAY, Op.THIS_WEEK, Op.THIS_MONTH, Op.THIS_YEAR},
    ColumnFamily.OPAQUE: _EQUALITY | _EMPTINESS,
}


def to_operator(name: str) -> FilterOperator | None:
    """Return the FilterOperator for ``name`` or None when it is not a known operator."""
    try:
        return FilterOperator(name)
    except ValueError:
        return None


def valid_operators(column_type: str) -> frozenset[FilterOperator]:
    """Operators allowed for a declared column type; unknown types get the opaque set."""
    return OPERATORS_BY_FAMILY[column_family(column_type)]


def values_are_well_formed(condition: FilterCondition, column_type: str) -> bool:
    """Check the operand shape of ``condition`` for a column of ``column_type``.

    Number operators need finite numbers, date operators need parseable dates, and every
    other value-taking operator needs a non-null value. Regex patterns must be strings that
    compile. Range operators check both bounds.
    """
    operator = to_operator(condition.operator)
    if operator is None:
        return False
    if operator in NO_VALUE_OPERATORS:
        return True

    operands = [condition.value]
    if operator in RANGE_OPERATORS:
        operands.append(condition.second_value)

    if operator == Op.REGEX:
        return isinstance(condition.value, str) and _compiles(condition.value.strip())

    family = column_family(column_type)
    if family == ColumnFamily.NUMBER:
        return all(parse_number(operand) is not None for operand in operands)
    if family == ColumnFamily.DATE:
        return all(parse_date(operand) is not None for operand in operands)
    return all(operand is not None for operand in operands)


def _compiles(pattern: str) -> bool:
    try:
        re.compile(pattern)
    except re.error:
        return False
    return True


def check_condition(condition: FilterCondition, columns: Mapping[int, Column]) -> str | None:
    """Return why ``condition`` would be dropped, or None when it compiles.

    The column's declared type is authoritative; the type echoed by the client in
    ``condition.column_type`` is not consulted.
    """
    column = columns.get(condition.column_id)
    if column is None:
        return f"column {condition.column_id} does not belong to the table"

    operator = to_operator(condition.operator)
    if operator is None:
        return f"unknown operator '{condition.operator}'"
    if operator not in valid_operators(column.type):
        return f"operator '{operator.value}' is not supported for column type '{column.type}'"
    if not values_are_well_formed(condition, column.type):
        return f"value is missing or malformed for operator '{operator.value}'"
    return None
