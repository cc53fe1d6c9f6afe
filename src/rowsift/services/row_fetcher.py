"""Execute a compiled predicate against the row store with a bounded fetch window."""

from __future__ import annotations

import logging
import math

from ..models.data_models import Row
from ..models.predicates import RowPredicate
from .row_store import RowStore

logger = logging.getLogger(__name__)


def fetch_window(limit: int, over_fetch_factor: float = 1.0, max_window: int | None = None) -> int:
    """Number of rows to request from the store for a result capped at ``limit``.

    The fallback string filter can only remove rows, so a factor above 1.0 lets it drop
    mismatches and still fill the requested limit more often. The window never exceeds
    ``max_window``.
    """
    window = max(limit, math.ceil(limit * over_fetch_factor))
    if max_window is not None:
        window = min(window, max(limit, max_window))
    return window


async def fetch_rows(
    store: RowStore,
    predicate: RowPredicate,
    limit: int,
    *,
    over_fetch_factor: float = 1.0,
    max_window: int | None = None,
) -> list[Row]:
    """Fetch rows matching ``predicate`` ordered by id, at most ``fetch_window`` of them."""
    take = fetch_window(limit, over_fetch_factor, max_window)
    rows = await store.find_rows(predicate, take=take, order_by="id")
    logger.debug("Fetched %d rows (window %d, limit %d)", len(rows), take, limit)
    return rows
