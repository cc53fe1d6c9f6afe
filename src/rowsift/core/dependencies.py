"""Process-wide collaborators used by the servers: row store, access gate and clock."""

from __future__ import annotations

import threading

from ..services.row_store import InMemoryRowStore, RowStore
from .access import AccessGate, PermitAllGate
from .clock import Clock, SystemClock

_store: RowStore | None = None
_gate: AccessGate | None = None
_clock: Clock | None = None
_lock = threading.Lock()


def get_row_store() -> RowStore:
    """Return the configured row store, creating an empty in-memory one on first use."""
    global _store  # noqa: PLW0603
    if _store is None:
        with _lock:
            if _store is None:
                _store = InMemoryRowStore()
    return _store


def set_row_store(store: RowStore) -> None:
    global _store  # noqa: PLW0603
    with _lock:
        _store = store


def get_access_gate() -> AccessGate:
    global _gate  # noqa: PLW0603
    if _gate is None:
        with _lock:
            if _gate is None:
                _gate = PermitAllGate()
    return _gate


def set_access_gate(gate: AccessGate) -> None:
    global _gate  # noqa: PLW0603
    with _lock:
        _gate = gate


def get_clock() -> Clock:
    global _clock  # noqa: PLW0603
    if _clock is None:
        with _lock:
            if _clock is None:
                _clock = SystemClock()
    return _clock


def set_clock(clock: Clock) -> None:
    global _clock  # noqa: PLW0603
    with _lock:
        _clock = clock


def reset_dependencies() -> None:
    """Drop every configured collaborator; the next getter call recreates the defaults."""
    global _store, _gate, _clock  # noqa: PLW0603
    with _lock:
        _store = None
        _gate = None
        _clock = None
