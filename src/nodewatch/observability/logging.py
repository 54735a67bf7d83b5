"""Structured logging: swappable formatter x destination.

    LogFormatter   : how records are structured (structlog, stdlib JSON)
    LogDestination : where output goes (stderr, JSONL file)

setup_logging(config) composes the two: formatter.setup() yields a
logging.Formatter, destination.create_handler() wraps it in a handler, and
the handler is attached to the root logger. Both formatters bridge stdlib, so
kubernetes/urllib3/httpx records come out in the same shape as ours.

Modules call get_logger(__name__) at import time and log dotted event names
with keyword fields:

    logger.info("node.transition", node="worker-1", condition="Ready")
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from nodewatch.observability.config import ObservabilityConfig


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class LogFormatter(Protocol):
    """Strategy: how log records are structured."""

    def setup(self, config: ObservabilityConfig) -> logging.Formatter: ...

    def get_logger(self, name: str, **kwargs: Any) -> Any: ...


@runtime_checkable
class LogDestination(Protocol):
    """Strategy: where formatted output is shipped."""

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler: ...

    def shutdown(self) -> None: ...


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructlogFormatter:
    """structlog processor pipeline rendered through a stdlib handler."""

    def setup(self, config: ObservabilityConfig) -> logging.Formatter:
        import structlog

        shared_processors: list = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]

        if config.log_format == "console":
            renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
        else:
            renderer = structlog.processors.JSONRenderer()

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *shared_processors,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        return structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        import structlog

        return structlog.get_logger(name, **kwargs)


class StdlibFormatter:
    """Plain stdlib logging, JSON lines or a human-readable console format."""

    def setup(self, config: ObservabilityConfig) -> logging.Formatter:
        if config.log_format == "console":
            return logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        return _StdlibJsonFormatter()

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        return _StructuredStdlibLogger(logging.getLogger(name))


class _StdlibJsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        d: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        if hasattr(record, "_structured"):
            d.update(record._structured)  # type: ignore[union-attr]
        if record.exc_info and record.exc_info[1]:
            d["exception"] = self.formatException(record.exc_info)
        return json.dumps(d, default=str)


class _StructuredStdlibLogger:
    """Gives a stdlib logger structlog's ``logger.info("event", key=value)`` API.

    Keyword fields ride on the LogRecord as ``_structured`` for the JSON
    formatter to merge in.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log(self, level: int, event: str, exc_info: bool = False, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "(unknown)",
            0,
            event,
            (),
            sys.exc_info() if exc_info else None,
        )
        record._structured = kwargs  # type: ignore[attr-defined]
        self._logger.handle(record)

    def debug(self, event: str, **kw: Any) -> None:
        self._log(logging.DEBUG, event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._log(logging.INFO, event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._log(logging.WARNING, event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._log(logging.ERROR, event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        self._log(logging.ERROR, event, exc_info=True, **kw)


# ---------------------------------------------------------------------------
# Destinations
# ---------------------------------------------------------------------------


class StderrDestination:
    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        return handler

    def shutdown(self) -> None:
        pass


class JsonlFileDestination:
    """Append to a JSONL file, one record per line."""

    def __init__(self, config: ObservabilityConfig) -> None:
        self._path = Path(config.jsonl_path or "/tmp/nodewatch.jsonl")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._handler: logging.Handler | None = None

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        self._handler = logging.FileHandler(str(self._path), mode="a", encoding="utf-8")
        self._handler.setFormatter(formatter)
        return self._handler

    def shutdown(self) -> None:
        if self._handler is not None:
            self._handler.close()


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

_FORMATTERS: dict[str, type] = {
    "structlog": StructlogFormatter,
    "stdlib": StdlibFormatter,
}

_DESTINATIONS: dict[str, type] = {
    "stderr": StderrDestination,
    "jsonl": JsonlFileDestination,
}

# Destinations whose constructor takes the config
_CONFIGURED_DESTINATIONS: set[type] = {JsonlFileDestination}


def register_formatter(name: str, cls: type) -> None:
    """Register a custom log formatter. Call before setup_logging()."""
    _FORMATTERS[name] = cls


def register_destination(name: str, cls: type, needs_config: bool = False) -> None:
    """Register a custom log destination. Call before setup_logging()."""
    _DESTINATIONS[name] = cls
    if needs_config:
        _CONFIGURED_DESTINATIONS.add(cls)


# ---------------------------------------------------------------------------
# Module state
# ---------------------------------------------------------------------------

_active_formatter: LogFormatter | None = None
_active_destination: LogDestination | None = None


def setup_logging(config: ObservabilityConfig) -> None:
    """Compose formatter x destination from config and wire it to the root logger.

    Raises ValueError for an unknown formatter or destination name.
    """
    global _active_formatter, _active_destination

    formatter_cls = _FORMATTERS.get(config.log_formatter)
    if formatter_cls is None:
        raise ValueError(
            f"Unknown log formatter: {config.log_formatter!r}. "
            f"Available: {list(_FORMATTERS)}."
        )

    dest_cls = _DESTINATIONS.get(config.log_destination)
    if dest_cls is None:
        raise ValueError(
            f"Unknown log destination: {config.log_destination!r}. "
            f"Available: {list(_DESTINATIONS)}."
        )

    formatter = formatter_cls()
    if dest_cls in _CONFIGURED_DESTINATIONS:
        destination = dest_cls(config)
    else:
        destination = dest_cls()

    handler = destination.create_handler(formatter.setup(config))

    # Replace only our own handler; pytest caplog and friends stay attached.
    handler._nodewatch_managed = True  # type: ignore[attr-defined]
    root_logger = logging.getLogger()
    for old in [h for h in root_logger.handlers if getattr(h, "_nodewatch_managed", False)]:
        root_logger.removeHandler(old)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    if _active_destination is not None:
        _active_destination.shutdown()
    _active_formatter = formatter
    _active_destination = destination


def get_logger(name: str = "", **kwargs: Any) -> Any:
    """Get a logger that accepts ``logger.info("event", key=value)``.

    Safe to call at import time: before setup_logging() the returned proxy
    resolves to a stdlib wrapper, afterwards to the active formatter's logger.
    """
    return _LazyLogger(name, kwargs)


class _LazyLogger:
    """Resolves the real logger on every call so module-level loggers follow setup_logging()."""

    def __init__(self, name: str, kwargs: dict[str, Any]) -> None:
        self._name = name
        self._kwargs = kwargs

    def _resolve(self) -> Any:
        if _active_formatter is not None:
            return _active_formatter.get_logger(self._name, **self._kwargs)
        return _StructuredStdlibLogger(logging.getLogger(self._name))

    def __getattr__(self, attr: str) -> Any:
        return getattr(self._resolve(), attr)


def shutdown_logging() -> None:
    """Detach our handler and close the active destination. Call on process exit."""
    global _active_formatter, _active_destination
    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if getattr(h, "_nodewatch_managed", False)]:
        root_logger.removeHandler(handler)
        handler.flush()
    if _active_destination is not None:
        _active_destination.shutdown()
    _active_formatter = None
    _active_destination = None
