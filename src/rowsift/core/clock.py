"""Clock abstraction for time-dependent filter compilation."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current wall-clock time."""

    def now(self) -> datetime:
        """Return the current local time as a naive datetime."""
        ...


class SystemClock:
    """Clock backed by the server's local time."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Clock frozen at a given instant, used for reproducible bucket boundaries."""

    def __init__(self, instant: datetime) -> None:
        self.instant = instant

    def now(self) -> datetime:
        return self.instant
