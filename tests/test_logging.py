"""Tests for the logging helpers."""

import logging
from typing import Any, Dict, List, Tuple

import pytest

from obsctl.logging import (
    ROOT_LOGGER_NAME,
    LogEvent,
    LogLevel,
    configure_cli_logging,
    get_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
)


def test_get_logger_namespaces() -> None:
    assert get_logger("store").name == "obsctl.store"
    assert get_logger("obsctl.proxy").name == "obsctl.proxy"
    assert get_logger(ROOT_LOGGER_NAME).name == "obsctl"


def test_callback_receives_level_event_and_data() -> None:
    events: List[Tuple[int, str, Dict[str, Any]]] = []
    logger = get_logger("test")

    def callback(level: int, event: str, data: Dict[str, Any]) -> None:
        events.append((level, event, data))

    log_debug(logger, LogEvent.CONTEXT, "added api", callback, api="stage")
    log_info(logger, LogEvent.PROXY, "starting", callback)
    log_warning(logger, LogEvent.AUTH, "slow", callback)
    log_error(logger, LogEvent.REQUEST, "failed", callback, status=500)

    assert events == [
        (LogLevel.DEBUG, "context", {"msg": "added api", "api": "stage"}),
        (LogLevel.INFO, "proxy", {"msg": "starting"}),
        (LogLevel.WARNING, "auth", {"msg": "slow"}),
        (LogLevel.ERROR, "request", {"msg": "failed", "status": 500}),
    ]


def test_failing_callback_falls_back_to_logging(caplog: pytest.LogCaptureFixture) -> None:
    def callback(level: int, event: str, data: Dict[str, Any]) -> None:
        raise RuntimeError("observer broke")

    with caplog.at_level(logging.ERROR):
        log_debug(get_logger("test"), LogEvent.CONFIG, "saved config", callback)

    assert "Logging callback failed with error: observer broke" in caplog.text


def test_logger_output(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="obsctl"):
        log_debug(get_logger("store"), LogEvent.CONTEXT, "added api", api="stage", url="https://stage/")

    assert "added api api=stage url=https://stage/" in caplog.text


def test_configure_cli_logging_replaces_handler() -> None:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    try:
        configure_cli_logging("warn")
        configure_cli_logging("debug")

        cli_handlers = [h for h in root.handlers if getattr(h, "_obsctl_cli", False)]
        assert len(cli_handlers) == 1
        assert root.level == logging.DEBUG
    finally:
        for handler in [h for h in root.handlers if getattr(h, "_obsctl_cli", False)]:
            root.removeHandler(handler)
        root.setLevel(logging.NOTSET)
