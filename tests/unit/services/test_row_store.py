"""Tests for the in-memory row store and predicate evaluation."""

from __future__ import annotations

from datetime import datetime

from rowsift.models.predicates import RowPredicate, ValueFilter, ValueOp, no_cell, some_cell
from rowsift.services.row_store import InMemoryRowStore, value_matches
from tests.factories import COMPANY_TABLE_ID, DATABASE_ID, PEOPLE_TABLE_ID, TENANT_ID


class TestValueMatches:
    """Evaluation of single value filters against stored JSON values."""

    def test_number_comparisons_coerce_strings(self) -> None:
        assert value_matches(ValueFilter(op=ValueOp.GT, operand=20.0), "25")
        assert not value_matches(ValueFilter(op=ValueOp.GT, operand=20.0), "abc")

    def test_range_is_inclusive(self) -> None:
        between = ValueFilter(op=ValueOp.RANGE, operand=18.0, upper=30.0)
        assert value_matches(between, 18)
        assert value_matches(between, 30.0)
        assert not value_matches(between, 35)

    def test_dates(self) -> None:
        after = ValueFilter(op=ValueOp.GT, operand=datetime(2024, 1, 1))
        assert value_matches(after, "2024-03-12")
        assert not value_matches(after, "2023-12-01")
        assert not value_matches(after, "not a date")

    def test_boolean_equality(self) -> None:
        is_true = ValueFilter(op=ValueOp.EQUALS, operand=True)
        assert value_matches(is_true, True)
        assert value_matches(is_true, "true")
        assert not value_matches(is_true, False)
        assert not value_matches(is_true, 1)

    def test_text_equality_uses_string_form(self) -> None:
        assert value_matches(ValueFilter(op=ValueOp.EQUALS, operand="100"), 100)

    def test_not_null(self) -> None:
        assert value_matches(ValueFilter(op=ValueOp.NOT_NULL), "")
        assert not value_matches(ValueFilter(op=ValueOp.NOT_NULL), None)

    def test_string_contains_only_matches_strings(self) -> None:
        contains = ValueFilter(op=ValueOp.STRING_CONTAINS, operand="Acme")
        assert value_matches(contains, "Acme Corp")
        assert not value_matches(contains, "acme corp")
        assert not value_matches(contains, ["Acme"])

    def test_string_contains_case_insensitive(self) -> None:
        contains = ValueFilter(op=ValueOp.STRING_CONTAINS, operand="ACME", case_insensitive=True)
        assert value_matches(contains, "acme corp")

    def test_regex(self) -> None:
        assert value_matches(ValueFilter(op=ValueOp.STRING_MATCHES, operand="^Ali"), "Alice")
        assert not value_matches(ValueFilter(op=ValueOp.STRING_MATCHES, operand="^Ali"), "Bob")


class TestInMemoryRowStore:
    """Store lookups, ordering and paging."""

    async def test_database_is_scoped_to_tenant(self, store: InMemoryRowStore) -> None:
        assert await store.find_database(DATABASE_ID, TENANT_ID) is not None
        assert await store.find_database(DATABASE_ID, TENANT_ID + 1) is None

    async def test_table_is_scoped_to_database(self, store: InMemoryRowStore) -> None:
        table = await store.find_table(PEOPLE_TABLE_ID, DATABASE_ID)
        assert table is not None
        assert table.rows == []
        assert await store.find_table(PEOPLE_TABLE_ID, DATABASE_ID + 1) is None

    async def test_columns_are_ordered(self, store: InMemoryRowStore) -> None:
        columns = await store.find_columns(PEOPLE_TABLE_ID)
        assert [column.name for column in columns] == [
            "Name",
            "Age",
            "Active",
            "Joined",
            "Company",
            "Tags",
        ]
        assert await store.find_columns(404) == []

    async def test_find_rows_pages_by_id(self, store: InMemoryRowStore) -> None:
        predicate = RowPredicate(table_id=PEOPLE_TABLE_ID)
        rows = await store.find_rows(predicate, take=2, skip=1)
        assert [row.id for row in rows] == [2, 3]

    async def test_find_rows_descending_by_created_at(self, store: InMemoryRowStore) -> None:
        predicate = RowPredicate(table_id=PEOPLE_TABLE_ID)
        rows = await store.find_rows(predicate, take=10, order_by="createdAt", descending=True)
        assert [row.id for row in rows] == [4, 3, 2, 1]

    async def test_referenced_table_rows_sort_by_created_at(
        self, store: InMemoryRowStore
    ) -> None:
        predicate = RowPredicate(table_id=COMPANY_TABLE_ID)
        rows = await store.find_rows(predicate, take=10, order_by="createdAt", descending=True)
        assert [row.id for row in rows] == [102, 101, 100]
        assert rows[-1].created_at == datetime(2024, 4, 9)

    async def test_find_rows_without_cells(self, store: InMemoryRowStore) -> None:
        predicate = RowPredicate(table_id=PEOPLE_TABLE_ID)
        rows = await store.find_rows(predicate, take=1, include_cells=False)
        assert rows[0].cells == []

    async def test_predicates_are_anded(self, store: InMemoryRowStore) -> None:
        predicate = RowPredicate(
            table_id=PEOPLE_TABLE_ID,
            conditions=[
                some_cell(2, ValueOp.RANGE, 18.0, upper=30.0),
                no_cell(1, ValueOp.EQUALS, "Carol"),
            ],
        )
        rows = await store.find_rows(predicate, take=10)
        assert [row.id for row in rows] == [1]
        assert await store.count_rows(predicate) == 1

    async def test_global_search_spans_columns(self, store: InMemoryRowStore) -> None:
        predicate = RowPredicate(
            table_id=PEOPLE_TABLE_ID, search=some_cell(None, ValueOp.STRING_CONTAINS, "smith")
        )
        assert [row.id for row in await store.find_rows(predicate, take=10)] == [4]

    async def test_reads_are_copies(self, store: InMemoryRowStore) -> None:
        predicate = RowPredicate(table_id=PEOPLE_TABLE_ID)
        first = await store.find_rows(predicate, take=1)
        first[0].cells.clear()
        again = await store.find_rows(predicate, take=1)
        assert again[0].cells != []

    async def test_find_tables(self, store: InMemoryRowStore) -> None:
        tables = await store.find_tables([COMPANY_TABLE_ID, 404])
        assert [table.id for table in tables] == [COMPANY_TABLE_ID]
        assert len(tables[0].rows) == 3

    async def test_unknown_table_has_no_rows(self, store: InMemoryRowStore) -> None:
        assert await store.count_rows(RowPredicate(table_id=404)) == 0
