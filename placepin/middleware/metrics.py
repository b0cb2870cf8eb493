"""Request metrics middleware for Prometheus monitoring."""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from placepin.core.events import REQUESTS_TOTAL, RESPONSES_TOTAL
from placepin.core.logging import get_logger

logger = get_logger().bind(module="metrics_middleware")


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Count requests by method and path and responses by status code.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = str(request.url.path).rstrip("/") or "/"
        REQUESTS_TOTAL.labels(method=request.method, path=path).inc()

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                error=str(e),
            )
            raise

        RESPONSES_TOTAL.labels(status_code=str(response.status_code)).inc()
        logger.info(
            "request_processed",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration=time.perf_counter() - start_time,
        )
        return response
