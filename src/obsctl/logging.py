"""Logging utilities for obsctl.

Module code logs through loggers under the ``obsctl`` namespace. Callers that
want to observe store and credential events can additionally pass a
``LogCallback`` into those operations; nothing here keeps global state.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

# Type for log callback functions
LogCallback = Callable[[int, str, Dict[str, Any]], None]

ROOT_LOGGER_NAME = "obsctl"


class LogLevel(int, Enum):
    """Log levels for obsctl."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class LogEvent(str, Enum):
    """Event types emitted by the core."""

    CONFIG = "config"
    CONTEXT = "context"
    AUTH = "auth"
    PROXY = "proxy"
    REQUEST = "request"


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``obsctl`` namespace.

    Args:
        name: Module name or short component name

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def _log(
    callback: LogCallback,
    level: LogLevel,
    event: LogEvent,
    data: Dict[str, Any],
) -> None:
    """Log an event with the provided callback.

    Args:
        callback: Function to call with the log data
        level: Severity level
        event: Event type
        data: Dictionary of event data
    """
    try:
        callback(level, event.value, data)
    except Exception as e:
        # Fallback to standard logging if callback fails
        logging.error(
            f"Logging callback failed with error: {e}. Original log: "
            f"level={level}, event={event}, data={data}"
        )


def _emit(
    logger: logging.Logger,
    level: LogLevel,
    event: LogEvent,
    msg: str,
    callback: Optional[LogCallback],
    data: Dict[str, Any],
) -> None:
    if logger.isEnabledFor(level):
        details = " ".join(f"{k}={v}" for k, v in data.items())
        logger.log(level, f"{msg} {details}" if details else msg)
    if callback is not None:
        _log(callback, level, event, {"msg": msg, **data})


def log_debug(
    logger: logging.Logger, event: LogEvent, msg: str, callback: Optional[LogCallback] = None, **data: Any
) -> None:
    """Log a debug message to the logger and the optional callback."""
    _emit(logger, LogLevel.DEBUG, event, msg, callback, data)


def log_info(
    logger: logging.Logger, event: LogEvent, msg: str, callback: Optional[LogCallback] = None, **data: Any
) -> None:
    """Log an info message to the logger and the optional callback."""
    _emit(logger, LogLevel.INFO, event, msg, callback, data)


def log_warning(
    logger: logging.Logger, event: LogEvent, msg: str, callback: Optional[LogCallback] = None, **data: Any
) -> None:
    """Log a warning to the logger and the optional callback."""
    _emit(logger, LogLevel.WARNING, event, msg, callback, data)


def log_error(
    logger: logging.Logger, event: LogEvent, msg: str, callback: Optional[LogCallback] = None, **data: Any
) -> None:
    """Log an error to the logger and the optional callback."""
    _emit(logger, LogLevel.ERROR, event, msg, callback, data)


def configure_cli_logging(level_name: str) -> None:
    """Attach a stderr handler to the ``obsctl`` logger at the given level.

    Only the CLI entry point calls this.

    Args:
        level_name: One of ``error``, ``warn``, ``info`` or ``debug``
    """
    levels = {
        "error": logging.ERROR,
        "warn": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
    }
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(levels.get(level_name.lower(), logging.INFO))
    for existing in [h for h in root.handlers if getattr(h, "_obsctl_cli", False)]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("level=%(levelname)s name=%(name)s msg=%(message)r"))
    handler._obsctl_cli = True  # type: ignore[attr-defined]
    root.addHandler(handler)
