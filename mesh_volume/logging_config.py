"""
Structured logging configuration for the mesh_volume package.

Provides:
- JSON formatter for machine-readable log files
- Console formatter for human-readable output
- Timing context manager and decorator for pipeline stages
- LogContext for tagging every record in a scope (e.g. the current file)

Usage:
    from mesh_volume.logging_config import setup_logging, get_logger

    setup_logging(level=logging.INFO, json_file="mesh_volume.log.json")

    logger = get_logger(__name__)
    logger.info("Volume computed", extra={"file": "ring.stl", "volume": 812.4})
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

PACKAGE_LOGGER = "mesh_volume"

F = TypeVar('F', bound=Callable[..., Any])

# Attributes every LogRecord has; anything else came in through `extra`
_RECORD_ATTRS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'asctime', 'taskName',
})


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields attached to a record through ``extra={...}`` or LogContext."""
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Output format:
        {"timestamp": "...", "level": "INFO", "logger": "...", "message": "...", ...}
    """

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.levelno >= logging.WARNING:
            entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            for key, value in record_extras(record).items():
                try:
                    json.dumps(value)
                    entry[key] = value
                except (TypeError, ValueError):
                    entry[key] = str(value)

        return json.dumps(entry, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter with optional colors.

    Format: [TIME] LEVEL logger: message [extra_key=value ...]
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True, show_extra: bool = True):
        super().__init__()
        self.use_colors = use_colors
        self.show_extra = show_extra

    @staticmethod
    def _compact(value: Any) -> str:
        if isinstance(value, float):
            return f"{value:.6g}"
        if isinstance(value, (list, tuple)) and len(value) > 3:
            return f"[...{len(value)} items]"
        return str(value)

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        level = f"{record.levelname:8}"
        if self.use_colors and record.levelname in self.COLORS:
            level = f"{self.COLORS[record.levelname]}{level}{self.RESET}"

        name = record.name
        if name.startswith(PACKAGE_LOGGER + "."):
            name = name[len(PACKAGE_LOGGER) + 1:]

        result = f"[{time_str}] {level} {name}: {record.getMessage()}"

        if self.show_extra:
            extras = record_extras(record)
            if extras:
                result += " [" + ", ".join(
                    f"{k}={self._compact(v)}" for k, v in extras.items()
                ) + "]"

        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)

        return result


def setup_logging(
    level: Union[int, str] = logging.INFO,
    json_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    use_colors: bool = True,
) -> logging.Logger:
    """Configure the ``mesh_volume`` logger.

    Replaces any handlers installed by a previous call.

    Args:
        level: Minimum log level, as int or name ("DEBUG", "INFO", ...)
        json_file: Optional path for a JSON-lines log file
        console: Log to stderr
        use_colors: ANSI colors on the console

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level!r}")

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(ConsoleFormatter(use_colors=use_colors))
        logger.addHandler(console_handler)

    if json_file:
        json_handler = logging.FileHandler(Path(json_file), encoding='utf-8')
        json_handler.setLevel(level)
        json_handler.setFormatter(JSONFormatter())
        logger.addHandler(json_handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module (typically ``__name__``)."""
    return logging.getLogger(name)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    **extra_fields: Any
) -> Iterator[Dict[str, Any]]:
    """Log start, completion and duration of an operation.

    Example:
        with log_timing(logger, "decode", format="binary") as timing:
            decoded = decode_binary(data)
            timing["triangles"] = decoded.n_triangles

    Yields:
        dict whose contents are added to the completion record
    """
    timing_info: Dict[str, Any] = {}
    start = time.perf_counter()

    logger.log(level, "Starting: %s", operation,
               extra={"event": "start", "operation": operation, **extra_fields})
    try:
        yield timing_info
    except Exception as exc:
        elapsed = time.perf_counter() - start
        logger.log(level, "Failed: %s (%.3fs) - %s", operation, elapsed, exc, extra={
            "event": "error",
            "operation": operation,
            "elapsed_seconds": elapsed,
            "error": str(exc),
            **extra_fields,
        })
        raise

    elapsed = time.perf_counter() - start
    logger.log(level, "Completed: %s (%.3fs)", operation, elapsed, extra={
        "event": "complete",
        "operation": operation,
        "elapsed_seconds": elapsed,
        **extra_fields,
        **timing_info,
    })


def timed(
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
    operation: Optional[str] = None,
) -> Callable[[F], F]:
    """Decorator form of :func:`log_timing`.

    Uses the decorated function's module logger and name by default.
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            func_logger = logger or logging.getLogger(func.__module__)
            with log_timing(func_logger, operation or func.__name__, level):
                return func(*args, **kwargs)

        return wrapper  # type: ignore
    return decorator


class _ContextFilter(logging.Filter):
    def __init__(self, fields: Dict[str, Any]):
        super().__init__()
        self.fields = fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.fields.items():
            setattr(record, key, value)
        return True


class LogContext:
    """Add fields to every record emitted by package handlers in a scope.

    The filter sits on the package logger's handlers, so records from child
    loggers (``mesh_volume.io.ascii_decoder`` etc.) are tagged too.

    Example:
        with LogContext(file="ring.stl"):
            compute_mesh_volume(data)  # every record carries file=ring.stl
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._filter = _ContextFilter(fields)
        self._handlers: list = []

    def __enter__(self) -> 'LogContext':
        self._handlers = list(logging.getLogger(PACKAGE_LOGGER).handlers)
        for handler in self._handlers:
            handler.addFilter(self._filter)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        for handler in self._handlers:
            handler.removeFilter(self._filter)
        self._handlers = []
