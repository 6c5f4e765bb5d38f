"""
multisig.logging
----------------

Structured logging for wallet processes:
- JSON or concise colored text formats
- Context-local fields via `contextvars` (wallet, caller, tx_id, change_id, op)
- Safe JSON serialization (bytes → hex, dataclasses → dicts)
- Helpers to bind/unbind context fields for the duration of an operation

Usage
-----
    from multisig import logging as mlog

    mlog.configure(json=False, level="INFO")  # once at process start
    log = mlog.get_logger(__name__)

    with mlog.scope(wallet=w.address, op="execute"):
        log.info("executing", extra={"tx_id": 3})

Library modules only call `logging.getLogger(__name__)`; handler and format
setup is left to the embedding application (the CLI calls `configure`).
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import os
import sys
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterator, Optional

# ----------------------------
# Context
# ----------------------------

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_MULTISIG_LOG_CONTEXT", default={})

DEFAULT_CONTEXT_KEYS = (
    "wallet",
    "op",
    "caller",
    "tx_id",
    "change_id",
)

_RESERVED = frozenset(
    (
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
    )
)


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    """Merge fields into the active context."""
    cur = dict(_LOG_CONTEXT.get())
    cur.update({k: _coerce_value(v) for k, v in fields.items()})
    _LOG_CONTEXT.set(cur)


def unbind(*keys: str) -> None:
    cur = dict(_LOG_CONTEXT.get())
    for k in keys:
        cur.pop(k, None)
    _LOG_CONTEXT.set(cur)


def clear_context() -> None:
    _LOG_CONTEXT.set({})


@contextmanager
def scope(**fields: Any) -> Iterator[None]:
    """Bind `fields` for the duration of the block; prior context is restored on exit."""
    prev = dict(_LOG_CONTEXT.get())
    try:
        bind(**fields)
        yield
    finally:
        _LOG_CONTEXT.set(prev)


# ----------------------------
# Formatters
# ----------------------------


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if is_dataclass(v) and not isinstance(v, type):
        return asdict(v)
    return str(v)


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: _coerce_value(v)
        for k, v in record.__dict__.items()
        if not k.startswith("_") and k not in _RESERVED
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(context())
        for k, v in _extras(record).items():
            payload.setdefault(k, v)
        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return json.dumps(payload, default=str, separators=(",", ":"))


_LEVEL_COLOR = {
    logging.DEBUG: "\x1b[90m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[1m\x1b[35m",
}
_RESET = "\x1b[0m"


def _supports_color(stream: Any) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty()) and os.environ.get("NO_COLOR") is None


class TextFormatter(logging.Formatter):
    """
    Human-friendly one-liner:
      2026-01-05T12:34:56.789Z | INFO  | multisig.runtime.engine | wallet=0x.. tx_id=3 | executed
    """

    def __init__(self, stream: Any = None):
        super().__init__()
        self._color = _supports_color(stream) if stream is not None else False

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        parts = [f"{k}={ctx[k]}" for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None]
        parts += [f"{k}={v}" for k, v in _extras(record).items() if k not in ctx]
        lvl = f"{record.levelname:<5}"
        if self._color:
            lvl = f"{_LEVEL_COLOR.get(record.levelno, '')}{lvl}{_RESET}"

        line = f"{_utcnow_iso()} | {lvl} | {record.name}"
        if parts:
            line += " | " + " ".join(parts)
        line += f" | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# ----------------------------
# Public setup API
# ----------------------------


def configure(
    *,
    json: Optional[bool] = None,
    level: Optional[str | int] = None,
    stream: Optional[io.TextIOBase] = None,
) -> None:
    """
    Configure the root logger.

    Parameters
    ----------
    json : bool | None
        If None, determined by env MULTISIG_LOG_FORMAT=(json|text), else JSON
        when the stream is not a TTY.
    level : str | int | None
        Minimum log level. If None, MULTISIG_LOG_LEVEL or "INFO".
    stream : TextIO | None
        Stream for the console handler (default: the current sys.stderr).

    Calling it again replaces the handler installed by the previous call;
    handlers installed by anything else are left alone.
    """
    stream = stream if stream is not None else sys.stderr
    lvl = _coerce_level(level if level is not None else os.environ.get("MULTISIG_LOG_LEVEL", "INFO"))
    root = logging.getLogger()
    root.setLevel(lvl)
    for h in list(root.handlers):
        if getattr(h, "_multisig", False):
            root.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(lvl)
    handler.setFormatter(JSONFormatter() if _decide_json(json, stream) else TextFormatter(stream))
    handler._multisig = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "multisig")


# ----------------------------
# Internals
# ----------------------------


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def _decide_json(json_flag: Optional[bool], stream: Any) -> bool:
    if json_flag is not None:
        return json_flag
    env = os.environ.get("MULTISIG_LOG_FORMAT", "").strip().lower()
    if env in ("json", "text"):
        return env == "json"
    return not _supports_color(stream)


__all__ = [
    "bind",
    "unbind",
    "clear_context",
    "context",
    "scope",
    "JSONFormatter",
    "TextFormatter",
    "configure",
    "get_logger",
]
