"""Tests for the declarative operator table."""

from __future__ import annotations

import pytest

from rowsift.models.data_models import ColumnFamily, FilterCondition, FilterOperator
from rowsift.services.operator_table import (
    OPERATORS_BY_FAMILY,
    check_condition,
    to_operator,
    valid_operators,
    values_are_well_formed,
)
from rowsift.services.predicate_compiler import CONDITION_COMPILERS
from tests.factories import people_columns


def condition(column_id: int, operator: str, value: object = None, **kwargs: object) -> FilterCondition:
    return FilterCondition(
        column_id=column_id,
        column_name="col",
        column_type="string",
        operator=operator,
        value=value,
        **kwargs,
    )


class TestOperatorTable:
    """Operators allowed per column family."""

    @pytest.mark.parametrize("family", list(ColumnFamily))
    def test_every_allowed_operator_has_a_compiler(self, family: ColumnFamily) -> None:
        """The compiler table covers exactly the operators the family allows."""
        assert set(CONDITION_COMPILERS[family]) == set(OPERATORS_BY_FAMILY[family])

    @pytest.mark.parametrize("column_type", ["string", "text", "email", "url"])
    def test_textual_types_share_operators(self, column_type: str) -> None:
        operators = valid_operators(column_type)
        assert FilterOperator.STARTS_WITH in operators
        assert FilterOperator.REGEX in operators
        assert FilterOperator.GREATER_THAN not in operators

    def test_reference_and_unknown_types_are_opaque(self) -> None:
        expected = {
            FilterOperator.EQUALS,
            FilterOperator.NOT_EQUALS,
            FilterOperator.IS_EMPTY,
            FilterOperator.IS_NOT_EMPTY,
        }
        assert valid_operators("reference") == expected
        assert valid_operators("customArray") == expected
        assert valid_operators("rating") == expected

    def test_relative_buckets_only_for_dates(self) -> None:
        assert FilterOperator.THIS_WEEK in valid_operators("datetime")
        assert FilterOperator.THIS_WEEK not in valid_operators("number")

    def test_to_operator(self) -> None:
        assert to_operator("between") == FilterOperator.BETWEEN
        assert to_operator("fuzzy") is None


class TestValueShape:
    """Operand checks per operator and column type."""

    def test_number_needs_finite_numbers(self) -> None:
        assert values_are_well_formed(condition(2, "greater_than", "18"), "number")
        assert not values_are_well_formed(condition(2, "greater_than", "abc"), "number")
        assert not values_are_well_formed(condition(2, "greater_than", True), "number")

    def test_range_checks_both_bounds(self) -> None:
        assert values_are_well_formed(condition(2, "between", 18, second_value=30), "number")
        assert not values_are_well_formed(condition(2, "between", 18), "number")

    def test_dates_must_parse(self) -> None:
        assert values_are_well_formed(condition(4, "before", "2024-01-01"), "date")
        assert not values_are_well_formed(condition(4, "before", "someday"), "date")

    def test_regex_must_compile(self) -> None:
        assert values_are_well_formed(condition(1, "regex", "^A.*"), "string")
        assert not values_are_well_formed(condition(1, "regex", "[unclosed"), "string")
        assert not values_are_well_formed(condition(1, "regex", 5), "string")

    def test_no_value_operators_need_nothing(self) -> None:
        assert values_are_well_formed(condition(1, "is_empty"), "string")
        assert values_are_well_formed(condition(4, "today"), "date")

    def test_other_operators_need_a_value(self) -> None:
        assert not values_are_well_formed(condition(1, "contains"), "string")


class TestCheckCondition:
    """Reasons given for dropped conditions."""

    def setup_method(self) -> None:
        self.columns = {column.id: column for column in people_columns()}

    def test_valid_condition(self) -> None:
        assert check_condition(condition(2, "between", 18, second_value=30), self.columns) is None

    def test_unknown_column(self) -> None:
        reason = check_condition(condition(42, "equals", "x"), self.columns)
        assert reason is not None
        assert "42" in reason

    def test_unknown_operator(self) -> None:
        reason = check_condition(condition(1, "fuzzy", "x"), self.columns)
        assert reason == "unknown operator 'fuzzy'"

    def test_declared_column_type_wins(self) -> None:
        """A client claiming a number column is a string cannot use text operators on it."""
        reason = check_condition(condition(2, "starts_with", "1"), self.columns)
        assert reason is not None
        assert "not supported" in reason

    def test_malformed_value(self) -> None:
        reason = check_condition(condition(2, "less_than", "many"), self.columns)
        assert reason is not None
        assert "malformed" in reason
