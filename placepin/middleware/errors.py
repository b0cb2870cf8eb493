"""Error handling middleware."""

from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_CONTENT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from placepin.core.errors import PlacesError
from placepin.core.logging import get_logger

logger = get_logger().bind(module="errors_middleware")

# Map exception types to status codes (None means use exception's status_code)
ErrorMapping = dict[type[Exception], int | None]

ERROR_MAPPING: ErrorMapping = {
    KeyError: HTTP_404_NOT_FOUND,
    ValueError: HTTP_422_UNPROCESSABLE_CONTENT,
    RequestValidationError: HTTP_422_UNPROCESSABLE_CONTENT,
    HTTPException: None,
    StarletteHTTPException: None,
}


def _error_detail(exc: Exception) -> tuple[str, int]:
    """Get error detail and status code from an exception."""
    if isinstance(exc, PlacesError):
        return exc.message, exc.status_code
    if isinstance(exc, StarletteHTTPException):
        return str(exc.detail), exc.status_code
    if isinstance(exc, RequestValidationError):
        return str(exc.errors()), HTTP_422_UNPROCESSABLE_CONTENT
    if isinstance(exc, KeyError):
        return (f"'{exc.args[0]}'" if exc.args else str(exc)), HTTP_404_NOT_FOUND

    mapped_status = ERROR_MAPPING.get(type(exc))
    status_code = mapped_status if mapped_status is not None else HTTP_500_INTERNAL_SERVER_ERROR
    return str(exc.args[0] if exc.args else exc), status_code


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Build the JSON error envelope for ``exc`` and log it."""
    detail, status_code = _error_detail(exc)
    correlation_id = getattr(request.state, "correlation_id", None)
    error_type = exc.__class__.__name__

    logger.error(
        "request_error",
        error_type=error_type,
        error_message=detail,
        status_code=status_code,
        path=request.url.path,
        method=request.method,
        correlation_id=correlation_id,
    )

    content: dict[str, Any] = {
        "error": error_type,
        "message": detail,
        "status_code": status_code,
        "correlation_id": str(correlation_id) if correlation_id else "unknown",
    }
    if isinstance(exc, PlacesError):
        content["kind"] = exc.kind.value

    response = JSONResponse(status_code=status_code, content=content)
    if correlation_id:
        response.headers["X-Request-ID"] = str(correlation_id)
    return response


async def handle_exception(request: Request, exc: Exception) -> JSONResponse:
    return error_response(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    """Route framework and pipeline exceptions through the error envelope."""
    app.add_exception_handler(PlacesError, handle_exception)
    app.add_exception_handler(StarletteHTTPException, handle_exception)
    app.add_exception_handler(RequestValidationError, handle_exception)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Converts exceptions escaping the routes into JSON error responses."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return error_response(request, exc)
