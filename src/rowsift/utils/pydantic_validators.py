"""Shared Pydantic validators for Rowsift request models."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import unquote

from pydantic import ValidationError

from ..models.data_models import FilterCondition, IgnoredFilter

logger = logging.getLogger(__name__)


def parse_json_string_to_list(v: list[Any] | str) -> list[Any]:
    """Parse JSON string to list.

    Args:
        v: Either a list or JSON string that should parse to a list

    Returns:
        List data

    Raises:
        ValueError: If JSON string is invalid or doesn't parse to list
    """
    if isinstance(v, str):
        try:
            parsed = json.loads(v)
            if not isinstance(parsed, list):
                raise ValueError("JSON string must parse to list")
            return parsed
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON string: {e}") from e
    return v


def parse_filters_param(raw: str | list[Any] | None) -> tuple[list[FilterCondition], list[IgnoredFilter]]:
    """Leniently parse the ``filters`` request parameter.

    The parameter is a URL-encoded JSON array of filter conditions. Malformed JSON, or JSON that
    is not an array, yields no filters at all. Array entries that do not validate as a
    FilterCondition are dropped one by one and returned as ignored filters.

    Returns:
        Tuple of (valid conditions, ignored entries)
    """
    if raw is None or raw == "":
        return [], []
    try:
        entries = parse_json_string_to_list(unquote(raw) if isinstance(raw, str) else raw)
    except ValueError as e:
        logger.debug("Ignoring malformed filters parameter: %s", e)
        return [], []

    conditions: list[FilterCondition] = []
    ignored: list[IgnoredFilter] = []
    for entry in entries:
        try:
            conditions.append(FilterCondition.model_validate(entry))
        except ValidationError as e:
            snapshot = entry if isinstance(entry, dict) else {"value": entry}
            ignored.append(
                IgnoredFilter(condition=snapshot, reason=f"invalid filter: {e.error_count()} error(s)")
            )
    return conditions, ignored
