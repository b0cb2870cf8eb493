"""Correlation ID middleware for request tracking."""

import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from structlog.contextvars import bind_contextvars, clear_contextvars

from placepin.core.logging import get_request_logger

REQUEST_ID_HEADER = "X-Request-ID"


def is_valid_correlation_id(value: str | None) -> bool:
    """Accept UUIDs and ``test-`` prefixed ids."""
    if not value:
        return False
    if value.startswith("test-"):
        return True
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return False
    return True


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Assign a correlation ID to each request.

    The ID is taken from the ``X-Request-ID`` header when valid, otherwise
    generated, then bound into the structlog context, stored on
    ``request.state`` and echoed on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        clear_contextvars()

        header_value = request.headers.get(REQUEST_ID_HEADER, "")
        correlation_id = (
            header_value if is_valid_correlation_id(header_value) else str(uuid.uuid4())
        )

        bind_contextvars(correlation_id=correlation_id)
        request.state.correlation_id = correlation_id
        get_request_logger(correlation_id).debug(
            "request_started", method=request.method, path=request.url.path
        )

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response
