"""
Structured JSON logging for the stock kernel.

Every record under the ``stock_kernel`` logger is one JSON object:
an envelope (ts, level, logger, message), the active LogContext fields,
any ``extra=`` fields, and, for errors, the exception's structured
attributes (``exc_code``, ``exc_line_no``, ...).
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

_LOGGER_PREFIX = "stock_kernel"
_HANDLER_NAME = "stock_kernel.structured"

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_context: ContextVar[dict[str, str] | None] = ContextVar("stock_log_context", default=None)


class LogContext:
    """Request-scoped fields merged into every record.

    A transition logged deep inside the ledger still carries the document
    and actor of the call that caused it.  Backed by one ContextVar, so
    threads and asyncio tasks each see their own fields.
    """

    FIELDS = ("correlation_id", "actor_id", "document_id", "document_kind", "reference")

    @classmethod
    def _merged(cls, fields: dict[str, Any]) -> dict[str, str]:
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
        merged = dict(_context.get() or {})
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        return merged

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set fields for the rest of the current context; None is ignored."""
        _context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get() or {})

    @classmethod
    def clear(cls) -> None:
        _context.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """Set fields inside a ``with`` block and restore the previous ones after."""
        token = _context.set(cls._merged(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, (tuple, set, frozenset)):
        return list(obj)
    # UUID, StockCheck and anything else
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON line per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STDLIB_KEYS and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the stock_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """Install the JSON handler on ``stock_kernel``; later calls are no-ops."""
    root_logger = logging.getLogger(_LOGGER_PREFIX)
    with _lock:
        if any(h.get_name() == _HANDLER_NAME for h in root_logger.handlers):
            return
        h = handler if handler is not None else logging.StreamHandler(sys.stderr)
        h.set_name(_HANDLER_NAME)
        h.setFormatter(StructuredFormatter())
        root_logger.addHandler(h)
        root_logger.setLevel(level)
        root_logger.propagate = False


def reset_logging() -> None:
    """Drop every handler on ``stock_kernel``. Tests only."""
    root_logger = logging.getLogger(_LOGGER_PREFIX)
    with _lock:
        for h in list(root_logger.handlers):
            root_logger.removeHandler(h)
        root_logger.setLevel(logging.WARNING)
