"""Structured log output for client calls.

Entries carry the request they describe as columns of their own (method, url)
next to free-form fields, so both renderers can lay a call out the same way:

    10:30:45.120 [info] GET https://api.example.com/movies request completed duration_ms=180.2 status=200
    {"timestamp": "...", "level": "info", "event": "request completed",
     "request": {"method": "GET", "url": "https://api.example.com/movies"}, "status": 200, ...}

Configure once at startup (`configure_logging` or `configure_from_settings`),
then take loggers from `get_logger`.
"""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

import orjson

from ...foundation.types import JsonDict, JsonValue

if TYPE_CHECKING:
    from ...core.request import RequestDescriptor
    from ...foundation.config import LoggingSettings


@dataclass(frozen=True, slots=True)
class LogEntry:
    timestamp: float
    level: str
    event: str
    method: str | None = None
    url: str | None = None
    fields: JsonDict = field(default_factory=dict)

    @property
    def has_request(self) -> bool:
        return self.method is not None or self.url is not None

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()

    @property
    def ts_human(self) -> str:
        """HH:MM:SS.mmm"""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


@dataclass(frozen=True, slots=True)
class BoundLogger:
    """Logger with bound fields and, once `for_request` is used, a bound request.

    Example:
        >>> log = get_logger("movies").for_request(event.request)
        >>> log.info("request completed", status=200)
        # => 10:30:45.300 [info] GET https://api.example.com/movies request completed logger="movies" status=200
    """

    context: JsonDict = field(default_factory=dict)
    method: str | None = None
    url: str | None = None
    _renderer: LogRenderer | None = None
    _level: int = logging.DEBUG

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return replace(self, context={**self.context, **kw})

    def for_request(self, request: RequestDescriptor) -> BoundLogger:
        """Logger whose entries describe `request`."""
        return replace(self, method=request.method, url=request.input)

    def _log(self, level: int, event: str, **kw: JsonValue) -> None:
        if level < self._level:
            return
        entry = LogEntry(time.time(), logging.getLevelName(level).lower(), event,
                         self.method, self.url, {**self.context, **kw})
        (self._renderer or _get_renderer()).render(entry)

    def debug(self, event: str, **kw: JsonValue) -> None: self._log(logging.DEBUG, event, **kw)
    def info(self, event: str, **kw: JsonValue) -> None: self._log(logging.INFO, event, **kw)
    def warning(self, event: str, **kw: JsonValue) -> None: self._log(logging.WARNING, event, **kw)
    def error(self, event: str, **kw: JsonValue) -> None: self._log(logging.ERROR, event, **kw)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


_ANSI = {"reset": "\033[0m", "bold": "\033[1m", "dim": "\033[2m", "cyan": "\033[36m", "magenta": "\033[35m"}
_LEVEL_ANSI = {"debug": "\033[2m", "info": "\033[32m", "warning": "\033[33m", "error": "\033[31m"}


@dataclass(slots=True)
class ConsoleRenderer:
    """One line per entry: timestamp [level] METHOD url event key=value ..."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = follow isatty
    show_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def _paint(self, text: str, style: str) -> str:
        return f"{style}{text}{_ANSI['reset']}" if self.colors else text

    def render(self, entry: LogEntry) -> None:
        parts = [self._paint(entry.ts_human, _ANSI["dim"])] if self.show_timestamp else []
        parts.append(self._paint(f"[{entry.level}]", _LEVEL_ANSI.get(entry.level, _ANSI["dim"])))
        if entry.has_request:
            parts.append(self._paint(" ".join(p for p in (entry.method, entry.url) if p), _ANSI["magenta"]))
        parts.append(self._paint(entry.event, _ANSI["bold"]))
        parts += [f"{self._paint(k, _ANSI['cyan'])}={_format_value(v)}" for k, v in sorted(entry.fields.items())]
        print(" ".join(parts), file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines; the request is nested under "request"."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        record: JsonDict = {"timestamp": entry.ts_iso, "level": entry.level, "event": entry.event}
        if entry.has_request:
            record["request"] = {"method": entry.method, "url": entry.url}
        line = orjson.dumps({**entry.fields, **record}, option=orjson.OPT_NON_STR_KEYS, default=str)
        print(line.decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    def render(self, entry: LogEntry) -> None:
        pass


def _format_value(v: object) -> str:
    match v:
        case str(): return f'"{v}"'
        case bool(): return str(v).lower()
        case None: return "null"
        case _: return str(v)


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────


_state: dict[str, LogRenderer | int | None] = {"renderer": None, "level": logging.INFO}


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Set the renderer and minimum level for loggers from `get_logger`. Format: "console", "json", "none"."""
    match format:
        case "console": renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "json": renderer = JsonRenderer(output=output or sys.stdout)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    _state.update(renderer=renderer, level=logging.getLevelName(level.upper()))
    return renderer


def configure_from_settings(settings: LoggingSettings | None = None, *, output: TextIO | None = None) -> LogRenderer:
    """Configure logging from `RESTCASE_LOG_*` settings."""
    if settings is None:
        from ...foundation.config import get_settings
        settings = get_settings().logging
    return configure_logging(format=settings.format, level=settings.level, output=output)


def get_logger(name: str | None = None, **fields: JsonValue) -> BoundLogger:
    """Logger at the configured level; `name` is bound as the 'logger' field."""
    level = _state["level"]
    return BoundLogger(context={**fields, **({"logger": name} if name else {})},
                       _level=level if isinstance(level, int) else logging.INFO)


def _get_renderer() -> LogRenderer:
    renderer = _state["renderer"]
    if not isinstance(renderer, LogRenderer):
        _state["renderer"] = renderer = ConsoleRenderer()
    return renderer
