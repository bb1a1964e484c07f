"""
Structured JSON logging for the ledger packages.

Every record under the ``ledger`` logger renders as one JSON object:

    {"timestamp": ..., "level": ..., "logger": ..., "message": "<event>",
     <bound context fields>, <extra= fields>, <exc_* fields>}

Messages are event names (``occurrence_deleted``); the details travel in
``extra=``.  ``LogContext.bind()`` attaches request-scoped fields such as
``series_id`` to every record emitted inside the ``with`` block.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Iterator, Mapping
from uuid import UUID

LOGGER_NAMESPACE = "ledger"

CONTEXT_FIELDS = ("correlation_id", "series_id", "actor_id", "trace_id")

_EMPTY_CONTEXT: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar(
    "ledger_log_context", default=_EMPTY_CONTEXT
)


# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------


class LogContext:
    """Request-scoped log fields, safe across threads and tasks.

    The context is one immutable mapping per ``contextvars`` context, so a
    ``bind`` in one task never leaks into another.  Unknown field names are
    ignored; values are stored as strings.
    """

    @staticmethod
    def _merge(fields: dict[str, Any]) -> Mapping[str, str]:
        merged = dict(_context.get())
        for name, value in fields.items():
            if name in CONTEXT_FIELDS and value is not None:
                merged[name] = str(value)
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set fields for the rest of the current context."""
        _context.set(cls._merge(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY_CONTEXT)

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """Set fields inside a ``with`` block; the previous values come back on exit."""
        token = _context.set(cls._merge(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """``exc_type``, ``exc_message``, ``exc_code`` and public attributes."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per line.  Bound context wins over a clashing extra."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for name, value in vars(record).items():
            if name not in _RESERVED_ATTRS:
                payload.setdefault(name, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``ledger.<name>``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


class _StructuredHandler(logging.StreamHandler):
    """Marks the handler installed by ``configure_logging``."""


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Install the JSON handler on the ``ledger`` logger.

    Idempotent: a second call only adjusts the level.  Records do not
    propagate to the root logger.
    """
    root = logging.getLogger(LOGGER_NAMESPACE)
    root.setLevel(level)
    root.propagate = False
    if any(getattr(h, "_ledger_structured", False) for h in root.handlers):
        return

    installed = handler if handler is not None else _StructuredHandler(stream or sys.stderr)
    installed.setFormatter(StructuredFormatter())
    installed._ledger_structured = True  # type: ignore[attr-defined]
    root.addHandler(installed)


def reset_logging() -> None:
    """Remove the installed handler and restore defaults.  Tests only."""
    root = logging.getLogger(LOGGER_NAMESPACE)
    for h in list(root.handlers):
        if getattr(h, "_ledger_structured", False):
            root.removeHandler(h)
    root.setLevel(logging.NOTSET)
    root.propagate = True
