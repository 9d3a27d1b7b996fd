# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# STATUS: Core - Structured logging with context
# PURPOSE: Consistent, queryable logging across parser, generator and history
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: ComponentType, LogContext, StructuredFormatter, HumanFormatter,
#          ContextLogger, get_logger, configure_logging, log_context,
#          get_current_context, log_checkpoint
# DEPENDENCIES: none
# ============================================================================
"""
Structured Logging

Every record can carry where the engine was when it was emitted: which
operation (import_sql, apply_sql, format...), which table, which statement of
a SQL document, and which history action. Those fields live on a
thread-local stack managed by log_context().

Output is either one JSON object per line (LOG_FORMAT=json) or a single
human-readable line with the context inlined.

Usage:
    from schemasync.logging import ComponentType, get_logger, log_context

    logger = get_logger(__name__, ComponentType.PARSER)

    with log_context(operation="import_sql", statement_index=4):
        logger.warning("Skipping ALTER TABLE on unknown table")
"""

import json
import logging
import os
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union


class ComponentType(str, Enum):
    """Which part of the engine a logger belongs to."""
    MODEL = "model"
    PARSER = "parser"
    GENERATOR = "generator"
    HISTORY = "history"
    STORAGE = "storage"
    SERVICE = "service"
    CLI = "cli"


# ============================================================================
# CONTEXT
# ============================================================================

@dataclass(frozen=True)
class LogContext:
    """Fields attached to every record logged inside a log_context block."""
    operation: Optional[str] = None
    table_key: Optional[str] = None
    statement_index: Optional[int] = None
    history_label: Optional[str] = None
    correlation_id: Optional[str] = None
    component: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def merged(self, **overrides: Any) -> "LogContext":
        """
        Child context: given fields override, extra dicts are combined.

        Keys that are not LogContext fields land in extra.
        """
        extra = {**self.extra, **overrides.pop("extra", {})}
        known = {f.name for f in fields(self)}
        for key in [k for k in overrides if k not in known]:
            extra[key] = overrides.pop(key)
        return replace(self, extra=extra, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        """Set fields only, with extra flattened in."""
        data = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) is not None
        }
        data.update(self.extra)
        return data


class _ContextStack(threading.local):
    def __init__(self):
        self.contexts: List[LogContext] = []


_stack = _ContextStack()


def get_current_context() -> LogContext:
    return _stack.contexts[-1] if _stack.contexts else LogContext()


@contextmanager
def log_context(**kwargs: Any) -> Iterator[LogContext]:
    """
    Push context fields for the duration of a block.

    Nested blocks inherit the outer fields and may override them.

    Example:
        with log_context(operation="apply_sql", history_label="Apply SQL changes"):
            logger.info("Replacing model")
    """
    context = get_current_context().merged(**kwargs)
    _stack.contexts.append(context)
    try:
        yield context
    finally:
        _stack.contexts.pop()


# ============================================================================
# FORMATTERS
# ============================================================================

def _now() -> datetime:
    return datetime.now(timezone.utc)


def _record_data(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    """Payload ContextLogger stored on the record, if any."""
    data = getattr(record, "extra", None)
    return data or None


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, for log shipping."""

    def __init__(self, include_context: bool = True):
        super().__init__()
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _now().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            context = get_current_context().to_dict()
            if context:
                entry["context"] = context

        data = _record_data(record)
        if data:
            entry["data"] = data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry["source"] = f"{record.filename}:{record.lineno}"
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """
    Single-line output for terminals.

    Context shows as [op=..., table=..., stmt=..., action=...] after the
    logger name.
    """

    _LABELS = (
        ("operation", "op"),
        ("table_key", "table"),
        ("statement_index", "stmt"),
        ("history_label", "action"),
    )

    def format(self, record: logging.LogRecord) -> str:
        context = get_current_context()
        tags = [
            f"{label}={getattr(context, name)}"
            for name, label in self._LABELS
            if getattr(context, name) is not None
        ]

        line = (
            f"{_now():%Y-%m-%d %H:%M:%S} {record.levelname:<8} {record.name}"
            f"{' [' + ', '.join(tags) + ']' if tags else ''}: {record.getMessage()}"
        )

        data = _record_data(record)
        if data:
            line += f" {data}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================================
# LOGGERS
# ============================================================================

class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that copies the current log context onto each record.

    Fields are stored under the single record attribute `extra` so the
    formatters can tell them apart from LogRecord internals.
    """

    def process(self, msg, kwargs):
        payload = {**kwargs.get("extra", {}), **get_current_context().to_dict()}
        component = self.extra.get("component")
        if component is not None:
            payload.setdefault("component", getattr(component, "value", component))
        kwargs["extra"] = {"extra": payload}
        return msg, kwargs


def get_logger(name: str, component: Optional[ComponentType] = None) -> ContextLogger:
    """Context-aware logger; use `.logger` for the underlying logging.Logger."""
    return ContextLogger(logging.getLogger(name), {"component": component})


def configure_logging(level: Union[str, int] = "INFO", json_output: bool = False) -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        level: Log level name or number
        json_output: JSON lines instead of human output (also LOG_FORMAT=json)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    use_json = json_output or os.getenv("LOG_FORMAT", "").lower() == "json"

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter() if use_json else HumanFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)


# ============================================================================
# CHECKPOINTS
# ============================================================================

def log_checkpoint(
    name: str,
    data: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log a named recovery marker at INFO as "CHECKPOINT: <name>".

    Used where the engine throws state away on purpose (history_reset,
    storage_purged) so those events can be searched for.
    """
    target = logger or logging.getLogger("schemasync.checkpoint")
    context = get_current_context()

    payload: Dict[str, Any] = {"checkpoint": name, "timestamp": _now().isoformat()}
    for key in ("operation", "history_label"):
        value = getattr(context, key)
        if value:
            payload[key] = value
    if data:
        payload["data"] = data

    target.info(f"CHECKPOINT: {name}", extra={"extra": payload})


__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
    "log_checkpoint",
]
