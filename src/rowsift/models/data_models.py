"""Data models for the Rowsift row store and filter pipeline."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Raw cell payloads are stored as JSON: scalars, arrays or null
JsonValue = Any


class ColumnType(str, Enum):
    """Declared column types known to the pipeline."""

    STRING = "string"
    TEXT = "text"
    EMAIL = "email"
    URL = "url"
    NUMBER = "number"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    REFERENCE = "reference"
    CUSTOM_ARRAY = "customArray"


class ColumnFamily(str, Enum):
    """Groups of column types that share operators and value parsing."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OPAQUE = "opaque"


_FAMILY_BY_TYPE: dict[str, ColumnFamily] = {
    ColumnType.STRING.value: ColumnFamily.TEXT,
    ColumnType.TEXT.value: ColumnFamily.TEXT,
    ColumnType.EMAIL.value: ColumnFamily.TEXT,
    ColumnType.URL.value: ColumnFamily.TEXT,
    ColumnType.NUMBER.value: ColumnFamily.NUMBER,
    ColumnType.INTEGER.value: ColumnFamily.NUMBER,
    ColumnType.DECIMAL.value: ColumnFamily.NUMBER,
    ColumnType.BOOLEAN.value: ColumnFamily.BOOLEAN,
    ColumnType.DATE.value: ColumnFamily.DATE,
    ColumnType.DATETIME.value: ColumnFamily.DATE,
}


def column_family(column_type: str) -> ColumnFamily:
    """Map a declared column type to its family; unknown types are opaque."""
    return _FAMILY_BY_TYPE.get(column_type, ColumnFamily.OPAQUE)


class FilterOperator(str, Enum):
    """Filter operators accepted in FilterCondition.operator."""

    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    REGEX = "regex"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    BETWEEN = "between"
    NOT_BETWEEN = "not_between"
    BEFORE = "before"
    AFTER = "after"
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    THIS_YEAR = "this_year"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class ExportFormat(str, Enum):
    """Supported export formats."""

    CSV = "csv"


class CamelModel(BaseModel):
    """Base model reading and writing the store's camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Column(CamelModel):
    """Column definition of a table."""

    id: int
    name: str
    type: str = Field(description="Declared column type; unknown values are treated as opaque")
    reference_table_id: int | None = None
    order: int = 0
    primary: bool = False
    custom_options: JsonValue = None

    @property
    def family(self) -> ColumnFamily:
        return column_family(self.type)


class Cell(CamelModel):
    """Stored value of one column in one row."""

    column_id: int
    value: JsonValue = None


class Row(CamelModel):
    """A table row with its cells."""

    id: int
    cells: list[Cell] = Field(default_factory=list)
    created_at: datetime | None = None

    def cell_for(self, column_id: int) -> Cell | None:
        """Return the first cell stored for ``column_id``."""
        return next((cell for cell in self.cells if cell.column_id == column_id), None)


class Table(CamelModel):
    """A table with its column definitions and rows."""

    id: int
    database_id: int
    name: str = ""
    columns: list[Column] = Field(default_factory=list)
    rows: list[Row] = Field(default_factory=list)

    @property
    def primary_column(self) -> Column | None:
        return next((col for col in self.columns if col.primary), None)


class Database(CamelModel):
    """A tenant-owned database holding tables."""

    id: int
    tenant_id: int
    name: str = ""


class FilterCondition(CamelModel):
    """A single per-column filter supplied with a request."""

    column_id: int = Field(gt=0, description="Column the filter applies to")
    column_name: str = Field(min_length=1, description="Display name of the column")
    column_type: str = Field(min_length=1, description="Column type as seen by the client")
    operator: str = Field(min_length=1, description="Filter operator name")
    value: JsonValue = Field(None, description="Operand for value-taking operators")
    second_value: JsonValue = Field(None, description="Upper bound for range operators")


class IgnoredFilter(BaseModel):
    """A filter condition that was dropped instead of compiled, with the reason."""

    condition: dict[str, JsonValue]
    reason: str
