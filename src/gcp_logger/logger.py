"""Logger capability + factory with environment-based output switching.

Learn: Logger is the interface the rest of the package depends on —
level methods plus three "return a new view" decorators:

    logger.with_context({...})   # persistent fields for every call on the view
    logger.with_metadata({...})  # extra fields for log calls on the view
    logger.with_error(exc)       # serialized exception attached to the entry

None of them mutate the receiver. The middleware decorates one shared base
logger per request, so mutation would leak trace fields across requests.

Field names the output format uses itself (event, message, level,
severity, time, timestamp) are written with a trailing underscore:

    logger.info("user action", event="signup")  # -> "event_": "signup"

StructlogLogger is the default implementation. create_logger() picks the
output format from the environment:

- production (Cloud Run): one JSON object per line, using the keys the
  Cloud Logging agent understands (severity, message, time)
- anything else: structlog's human-readable ConsoleRenderer
"""

import logging
import sys
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Optional, TextIO

import structlog

from gcp_logger.config import PRODUCTION, Settings, get_settings
from gcp_logger.errors import ErrorSerializer, serialize_error

# structlog method name -> Cloud Logging LogSeverity
_SEVERITY = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
}

# Keys the render pipeline writes itself; user fields with these names get a
# trailing underscore so they neither clash with nor get overwritten by them
_RESERVED_KEYS = frozenset({"event", "message", "level", "severity", "time", "timestamp"})


def _escape_reserved(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {(f"{key}_" if key in _RESERVED_KEYS else key): value for key, value in fields.items()}


class Logger(ABC):
    """Abstract logger view.

    Subclasses implement the three view constructors and `_log`; the level
    methods are shared.
    """

    @abstractmethod
    def with_context(self, fields: Mapping[str, Any]) -> "Logger":
        """Return a view carrying `fields` (merged over existing context)."""

    @abstractmethod
    def with_metadata(self, fields: Mapping[str, Any]) -> "Logger":
        """Return a view that adds `fields` to each entry it writes."""

    @abstractmethod
    def with_error(self, err: BaseException) -> "Logger":
        """Return a view that attaches `err` to each entry it writes."""

    @abstractmethod
    def get_context(self) -> dict[str, Any]:
        """Copy of the persistent context fields."""

    @abstractmethod
    def _log(self, level: str, message: str, fields: dict[str, Any]) -> None:
        """Write one entry. `level` is a key of _SEVERITY."""

    def trace(self, message: str, /, **fields: Any) -> None:
        self._log("debug", message, fields)

    def debug(self, message: str, /, **fields: Any) -> None:
        self._log("debug", message, fields)

    def info(self, message: str, /, **fields: Any) -> None:
        self._log("info", message, fields)

    def warn(self, message: str, /, **fields: Any) -> None:
        self._log("warning", message, fields)

    warning = warn

    def error(self, message: str, /, **fields: Any) -> None:
        self._log("error", message, fields)

    def fatal(self, message: str, /, **fields: Any) -> None:
        self._log("critical", message, fields)


class StructlogLogger(Logger):
    """Logger backed by a structlog bound logger."""

    def __init__(
        self,
        bound: Any,
        error_serializer: ErrorSerializer = serialize_error,
        metadata: Optional[Mapping[str, Any]] = None,
        error: Optional[BaseException] = None,
    ):
        self._bound = bound
        self._error_serializer = error_serializer
        self._metadata = dict(metadata or {})
        self._error = error

    def _replace(self, **changes: Any) -> "StructlogLogger":
        params = {
            "bound": self._bound,
            "error_serializer": self._error_serializer,
            "metadata": self._metadata,
            "error": self._error,
        }
        params.update(changes)
        return StructlogLogger(**params)

    def with_context(self, fields: Mapping[str, Any]) -> "StructlogLogger":
        # BoundLogger.bind() already returns a new logger
        return self._replace(bound=self._bound.bind(**_escape_reserved(fields)))

    def with_metadata(self, fields: Mapping[str, Any]) -> "StructlogLogger":
        return self._replace(metadata={**self._metadata, **_escape_reserved(fields)})

    def with_error(self, err: BaseException) -> "StructlogLogger":
        return self._replace(error=err)

    def get_context(self) -> dict[str, Any]:
        return dict(structlog.get_context(self._bound))

    def _log(self, level: str, message: str, fields: dict[str, Any]) -> None:
        entry = {**self._metadata, **_escape_reserved(fields)}
        if self._error is not None:
            entry["err"] = self._error_serializer(self._error)
        getattr(self._bound, level)(message, **entry)


def _gcp_structured(_logger: Any, _method_name: str, event_dict: dict) -> dict:
    """Rename structlog's level/event keys to Cloud Logging's severity/message."""
    level = event_dict.pop("level", "")
    event_dict["severity"] = _SEVERITY.get(level, "DEFAULT")
    event_dict["message"] = event_dict.pop("event", "")
    return event_dict


def _production_processors() -> list:
    return [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="time"),
        _gcp_structured,
        structlog.processors.JSONRenderer(default=str),
    ]


def _development_processors(stream: TextIO) -> list:
    colors = hasattr(stream, "isatty") and stream.isatty()
    return [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(colors=colors),
    ]


def create_logger(
    environment: Optional[str] = None,
    error_serializer: Optional[ErrorSerializer] = None,
    stream: Optional[TextIO] = None,
    level: int = logging.DEBUG,
    settings: Optional[Settings] = None,
) -> StructlogLogger:
    """Build a logger whose output format follows the runtime environment.

    Args:
        environment: overrides detection ("production" selects JSON output).
        error_serializer: turns exceptions passed to with_error() into dicts.
        stream: where entries are written (defaults to stdout).
        level: minimum stdlib level that gets written.
        settings: injected config; read from env vars when omitted.

    Uses structlog.wrap_logger, so global structlog configuration is left
    alone and several loggers with different outputs can coexist.
    """
    if environment is None:
        if settings is None:
            settings = get_settings()
        environment = settings.detect_environment()
    stream = stream if stream is not None else sys.stdout

    if environment == PRODUCTION:
        processors = _production_processors()
    else:
        processors = _development_processors(stream)

    # bind() resolves the lazy proxy into a concrete bound logger
    bound = structlog.wrap_logger(
        structlog.PrintLogger(file=stream),
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
    ).bind()
    return StructlogLogger(bound, error_serializer=error_serializer or serialize_error)
