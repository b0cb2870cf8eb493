"""Tests for logging configuration."""

from collections.abc import Generator

import pytest
import structlog
from structlog.stdlib import BoundLogger
from structlog.types import BindableLogger

from placepin.core.logging import (
    LOG_LEVELS,
    configure_logging,
    get_logger,
    get_request_logger,
)


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    """Put back the structlog configuration active before the test."""
    saved = structlog.get_config()
    yield
    structlog.configure(**saved)


def test_configure_logging_uses_json_renderer() -> None:
    configure_logging()
    processors = structlog.get_config()["processors"]

    assert any(p.__class__.__name__ == "JSONRenderer" for p in processors)


def test_configure_logging_in_testing_mode_uses_key_value_renderer() -> None:
    configure_logging(testing=True)
    processors = structlog.get_config()["processors"]

    assert any(p.__class__.__name__ == "KeyValueRenderer" for p in processors)
    assert not any(p.__class__.__name__ == "JSONRenderer" for p in processors)


def test_configure_logging_sets_level() -> None:
    import logging

    configure_logging(level="warning")

    assert logging.getLogger("placepin").level == LOG_LEVELS["warning"]
    assert logging.getLogger().level == logging.WARNING


def test_unknown_level_falls_back_to_info() -> None:
    import logging

    configure_logging(level="chatty")

    assert logging.getLogger("placepin").level == logging.INFO


def test_get_logger() -> None:
    logger = get_logger()

    assert isinstance(logger, BoundLogger | BindableLogger)


def test_get_request_logger_binds_request_id() -> None:
    logger = get_request_logger("test-request-id")

    assert logger._context.get("request_id") == "test-request-id"


def test_get_request_logger_without_id() -> None:
    logger = get_request_logger()

    assert isinstance(logger, BoundLogger | BindableLogger)


def test_configure_logging_installs_single_root_handler() -> None:
    import logging

    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging()
        configure_logging()

        assert len(root.handlers) == 1
        assert logging.getLogger("placepin").handlers == []
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)


def test_testing_renderer_puts_event_first() -> None:
    configure_logging(testing=True)
    renderer = structlog.get_config()["processors"][-1]

    line = renderer(None, "info", {"module": "client", "event": "ready", "x": 1})

    assert line.startswith("event='ready' module='client'")
