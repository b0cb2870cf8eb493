"""Application startup and shutdown events."""

from collections.abc import Awaitable, Callable
from typing import Any

from prometheus_client import Counter

from placepin.core.config import settings
from placepin.core.logging import get_logger
from placepin.services.session import PlacesSession

# Prometheus metrics
REQUESTS_TOTAL = Counter(
    "placepin_http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "path"],
)

RESPONSES_TOTAL = Counter(
    "placepin_http_responses_total",
    "Total number of HTTP responses",
    labelnames=["status_code"],
)

logger = get_logger().bind(module="events")

SessionFactory = Callable[[], PlacesSession]


def create_start_app_handler(
    app: Any,
    session_factory: SessionFactory | None = None,
) -> Callable[[], Awaitable[None]]:
    """Create startup event handler.

    Args:
        app: FastAPI application instance
        session_factory: Builds the places session; Google-backed by default

    Returns:
        Startup handler function
    """

    async def start_app() -> None:
        session = getattr(app.state, "session", None)
        if session is None:
            session = (session_factory or PlacesSession)()
            app.state.session = session

        await session.start()

        logger.info(
            "application_started",
            provider=session.client.provider.name,
            map_ready=session.map.is_ready,
            api_prefix=settings.api_prefix,
        )

    return start_app


def create_stop_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create shutdown event handler.

    Args:
        app: FastAPI application instance

    Returns:
        Shutdown handler function
    """

    async def stop_app() -> None:
        session = getattr(app.state, "session", None)
        if session is None:
            return
        try:
            await session.close()
            logger.info("application_stopped")
        except Exception as e:
            logger.error("application_shutdown_failed", error=str(e))
            raise
        finally:
            app.state.session = None

    return stop_app
