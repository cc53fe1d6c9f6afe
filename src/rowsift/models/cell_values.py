"""Typed cell values.

Raw cell payloads are JSON of arbitrary shape. Before rendering or string matching they are
wrapped in one of the models below, chosen from the owning column's declared type rather than
from the runtime shape of the value.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Discriminator

from ..utils.validators import is_true, parse_date, parse_number
from .data_models import Column, ColumnFamily, ColumnType


class EmptyValue(BaseModel):
    """Cell with a null payload."""

    kind: Literal["empty"] = "empty"

    def as_text(self) -> str:
        return ""


class TextValue(BaseModel):
    """Scalar value of a textual, reference or unknown-typed column."""

    kind: Literal["text"] = "text"
    raw: Any

    def as_text(self) -> str:
        return format_scalar(self.raw)


class NumberValue(BaseModel):
    """Value of a number column; ``number`` is None when the payload is not numeric."""

    kind: Literal["number"] = "number"
    raw: Any
    number: float | None = None

    def as_text(self) -> str:
        return format_scalar(self.raw)


class BoolValue(BaseModel):
    """Value of a boolean column."""

    kind: Literal["bool"] = "bool"
    raw: Any
    flag: bool

    def as_text(self) -> str:
        return "true" if self.flag else "false"


class DateTimeValue(BaseModel):
    """Value of a date or datetime column; ``moment`` is None when unparseable."""

    kind: Literal["datetime"] = "datetime"
    raw: Any
    moment: datetime | None = None

    def as_text(self) -> str:
        return format_scalar(self.raw)


class StringListValue(BaseModel):
    """Array payload (customArray columns and multi-valued references)."""

    kind: Literal["list"] = "list"
    items: list[Any]

    def non_empty_items(self) -> list[Any]:
        return [item for item in self.items if item is not None and item != ""]

    def as_text(self) -> str:
        return ", ".join(format_scalar(item) for item in self.non_empty_items())


TypedCellValue = Annotated[
    EmptyValue | TextValue | NumberValue | BoolValue | DateTimeValue | StringListValue,
    Discriminator("kind"),
]


def format_scalar(value: Any) -> str:
    """Render a JSON scalar the way it appears in exported text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def typed_cell_value(column: Column, raw: Any) -> TypedCellValue:
    """Wrap a raw payload according to the declared type of ``column``."""
    if raw is None:
        return EmptyValue()
    if isinstance(raw, list):
        return StringListValue(items=raw)
    if column.type == ColumnType.CUSTOM_ARRAY:
        return StringListValue(items=[raw])

    family = column.family
    if family == ColumnFamily.NUMBER:
        return NumberValue(raw=raw, number=parse_number(raw))
    if family == ColumnFamily.BOOLEAN:
        return BoolValue(raw=raw, flag=is_true(raw))
    if family == ColumnFamily.DATE:
        return DateTimeValue(raw=raw, moment=parse_date(raw))
    return TextValue(raw=raw)
