"""Structured logging with per-request correlation IDs.

Log lines are JSON objects. ``get_logger`` returns an adapter that accepts extra keyword fields,
so call sites can write ``logger.info("Exported", table_id=7, rows=12)``.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import MutableMapping
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

correlation_id_ctx: ContextVar[str] = ContextVar("rowsift_correlation_id", default="-")

_RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "correlation_id",
}


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind ``correlation_id`` (or a fresh UUID) to the current context and return it."""
    value = correlation_id or str(uuid.uuid4())
    correlation_id_ctx.set(value)
    return value


def get_correlation_id() -> str:
    return correlation_id_ctx.get()


class CorrelationIdFilter(logging.Filter):
    """Expose the context's correlation ID as ``record.correlation_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_ctx.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per log record, including any structured extra fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", "-"),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


class StructuredLogger(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter that turns keyword arguments into structured fields."""

    _PASSTHROUGH = ("exc_info", "stack_info", "stacklevel", "extra")

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        fields = {key: kwargs.pop(key) for key in list(kwargs) if key not in self._PASSTHROUGH}
        if fields:
            kwargs["extra"] = {**kwargs.get("extra", {}), **fields}
        return msg, kwargs


def get_logger(name: str) -> StructuredLogger:
    """Return a structured logger for ``name``."""
    return StructuredLogger(logging.getLogger(name), {})


_configured = False


def setup_structured_logging(level: str = "INFO") -> None:
    """Install the JSON handler on the root logger. Calling again only changes the level."""
    global _configured  # noqa: PLW0603
    root = logging.getLogger()
    root.setLevel(level.upper())
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)
    _configured = True
