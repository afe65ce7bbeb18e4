"""JSON log output tagged with the plan (and symbol) being computed.

Engine modules only call ``logging.getLogger(__name__)``; applications that
want structured lines call :func:`setup_logging` once and wrap each planning
run in :func:`plan_context`.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import IO, Any, Dict, Iterator, Optional

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "taskName",
}
_CONTEXT_ATTRS = ("plan_id", "symbol")

PLAN_ID_CONTEXT: ContextVar[Optional[str]] = ContextVar("plan_id", default=None)
SYMBOL_CONTEXT: ContextVar[Optional[str]] = ContextVar("symbol", default=None)


class PlanContextFilter(logging.Filter):
    """Copy the active plan ID and symbol onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.plan_id = PLAN_ID_CONTEXT.get()
        record.symbol = SYMBOL_CONTEXT.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields are nested under ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _CONTEXT_ATTRS:
            value = getattr(record, name, None)
            if value:
                payload[name] = value

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in _CONTEXT_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))


@contextmanager
def plan_context(plan_id: Optional[str], symbol: Optional[str] = None) -> Iterator[None]:
    """Tag every record emitted inside the block with ``plan_id`` and ``symbol``."""

    plan_token = PLAN_ID_CONTEXT.set(plan_id)
    symbol_token = SYMBOL_CONTEXT.set(symbol)
    try:
        yield
    finally:
        SYMBOL_CONTEXT.reset(symbol_token)
        PLAN_ID_CONTEXT.reset(plan_token)


_CONFIGURED = False


def setup_logging(level: int | str | None = None, stream: IO[str] | None = None) -> None:
    """Install the JSON handler on the root logger; later calls are no-ops.

    ``level`` defaults to the ``log_level`` setting.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    if level is None:
        from .config import get_settings

        level = get_settings().log_level

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(PlanContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    logging.captureWarnings(True)
    _CONFIGURED = True


__all__ = [
    "PLAN_ID_CONTEXT",
    "SYMBOL_CONTEXT",
    "JsonFormatter",
    "PlanContextFilter",
    "plan_context",
    "setup_logging",
]
