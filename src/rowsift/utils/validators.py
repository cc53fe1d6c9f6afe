"""Value parsing helpers shared by the filter compiler, store and serializer."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

import pandas as pd

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


def parse_number(value: Any) -> float | None:
    """Parse a filter operand or cell value as a finite float.

    Booleans are rejected even though they are ints in Python. Strings are stripped first.
    Returns None for anything that is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_date(value: Any) -> datetime | None:
    """Parse a filter operand or cell value as a naive datetime.

    Strings go through pandas' parser; numbers are epoch milliseconds. Timezone-aware
    inputs are converted to UTC and made naive so they compare with stored values.
    """
    if value is None or isinstance(value, bool) or value == "":
        return None
    if isinstance(value, datetime):
        timestamp = pd.Timestamp(value)
    elif isinstance(value, date):
        timestamp = pd.Timestamp(value.year, value.month, value.day)
    elif isinstance(value, int | float):
        if not math.isfinite(value):
            return None
        timestamp = pd.to_datetime(value, unit="ms", errors="coerce")
    elif isinstance(value, str):
        timestamp = pd.to_datetime(value.strip(), errors="coerce")
    else:
        return None

    if pd.isna(timestamp):
        return None
    if timestamp.tzinfo is not None:
        timestamp = timestamp.tz_convert(None)
    return timestamp.to_pydatetime()


def is_true(value: Any) -> bool:
    """Boolean cell semantics: only ``True`` and the string ``"true"`` are true."""
    return value is True or value == "true"


def parse_int_prefix(value: str | None) -> int | None:
    """Parse the leading integer of a query string value ("25rows" -> 25, "abc" -> None)."""
    if value is None:
        return None
    match = _INT_PREFIX.match(value)
    return int(match.group(1)) if match else None


def is_blank(value: Any) -> bool:
    """True for None and for values whose string form is empty after trimming."""
    return value is None or str(value).strip() == ""
