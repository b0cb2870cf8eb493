"""Structured logging for placepin.

Every module logs through ``get_logger().bind(module=...)`` with event names
such as ``service_initialization_failed`` or ``normalizer_dropped_field``.
Output is JSON in production and key/value pairs under test so assertions
on captured output stay readable.
"""

import logging
from typing import Any, cast

import structlog
from structlog import processors, stdlib
from structlog.contextvars import merge_contextvars
from structlog.stdlib import BoundLogger

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

APP_LOGGER = "placepin"


def _shared_processors() -> list[Any]:
    # Applied to structlog events and to records from plain stdlib loggers
    # (uvicorn, httpx) alike.
    return [
        stdlib.add_logger_name,
        stdlib.add_log_level,
        stdlib.PositionalArgumentsFormatter(),
        processors.TimeStamper(fmt="iso", utc=True),
        processors.dict_tracebacks,
    ]


def _renderer(testing: bool) -> Any:
    if testing:
        return processors.KeyValueRenderer(key_order=["event", "module"])
    return processors.JSONRenderer()


def configure_logging(testing: bool = False, level: str = "info") -> None:
    """Route structlog and stdlib logging through one renderer.

    Args:
        testing: Render key/value pairs instead of JSON
        level: Minimum level name; unknown names fall back to ``info``
    """
    log_level = LOG_LEVELS.get(level.lower(), logging.INFO)

    structlog.configure(
        processors=[
            merge_contextvars,
            stdlib.filter_by_level,
            *_shared_processors(),
            processors.format_exc_info,
            _renderer(testing),
        ],
        context_class=dict,
        logger_factory=stdlib.LoggerFactory(),
        wrapper_class=stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(
        stdlib.ProcessorFormatter(
            processor=_renderer(testing),
            foreign_pre_chain=_shared_processors(),
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # Records propagate to the root handler.
    app = logging.getLogger(APP_LOGGER)
    app.handlers = []
    app.setLevel(log_level)


def get_logger() -> BoundLogger:
    """Return the application logger; callers bind ``module`` themselves."""
    return cast(BoundLogger, structlog.get_logger(APP_LOGGER))


def get_request_logger(request_id: str | None = None) -> BoundLogger:
    """Return a logger carrying the correlation id of the current request."""
    logger = get_logger()
    if request_id:
        logger = logger.bind(request_id=request_id)
    return logger
