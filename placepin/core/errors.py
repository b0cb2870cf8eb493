"""Error taxonomy for the place-resolution pipeline.

Every failure the pipeline reports is a ``PlacesError`` subclass carrying an
``ErrorKind``. Provider and transport exceptions are mapped onto the taxonomy
by ``classify_error`` so callers only ever branch on a closed set of kinds.
"""

import asyncio
from enum import Enum

import httpx
from starlette.status import (
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_CONTENT,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
    HTTP_504_GATEWAY_TIMEOUT,
)


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""

    INITIALIZATION_TIMEOUT = "InitializationTimeout"
    CAPABILITY_NOT_ENABLED = "CapabilityNotEnabled"
    AUTHORIZATION_DENIED = "AuthorizationDenied"
    ACCESS_BLOCKED = "AccessBlocked"
    NOT_FOUND = "NotFound"
    REQUEST_DENIED = "RequestDenied"
    INVALID_COORDINATES = "InvalidCoordinates"
    STATE_CORRUPTED = "StateCorrupted"
    UNCLASSIFIED = "Unclassified"


class ErrorDomain(str, Enum):
    """User-visible failure domains, one error banner each."""

    SEARCH = "search"
    MAP = "map"
    SERVICE = "service"


class PlacesError(Exception):
    """Base exception for all classified pipeline failures."""

    kind: ErrorKind = ErrorKind.UNCLASSIFIED
    status_code: int = HTTP_502_BAD_GATEWAY
    user_message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class InitializationTimeoutError(PlacesError):
    """The provider client did not load in time."""

    kind = ErrorKind.INITIALIZATION_TIMEOUT
    status_code = HTTP_504_GATEWAY_TIMEOUT
    user_message = (
        "Google Maps API loading timed out. "
        "Check your internet connection and try again."
    )


class CapabilityNotEnabledError(PlacesError):
    """The provider loaded without the required capability."""

    kind = ErrorKind.CAPABILITY_NOT_ENABLED
    status_code = HTTP_503_SERVICE_UNAVAILABLE
    user_message = (
        "Places API not enabled. Please enable it in Google Cloud Console."
    )


class AuthorizationDeniedError(PlacesError):
    """The provider rejected the credentials or billing state."""

    kind = ErrorKind.AUTHORIZATION_DENIED
    status_code = HTTP_403_FORBIDDEN
    user_message = (
        "API request denied. Check the API key and that billing is enabled."
    )


class AccessBlockedError(PlacesError):
    """The credentials are restricted from calling this API."""

    kind = ErrorKind.ACCESS_BLOCKED
    status_code = HTTP_403_FORBIDDEN
    user_message = "API key blocked for this API. Check the key restrictions."


class PlaceNotFoundError(PlacesError):
    """Detail lookup found no place for the identifier."""

    kind = ErrorKind.NOT_FOUND
    status_code = HTTP_404_NOT_FOUND
    user_message = "Place not found"


class RequestDeniedError(PlacesError):
    """Detail lookup was refused by the provider."""

    kind = ErrorKind.REQUEST_DENIED
    status_code = HTTP_403_FORBIDDEN
    user_message = "Place Details API request denied"


class InvalidCoordinatesError(PlacesError):
    """A map mutation was attempted with an unusable position."""

    kind = ErrorKind.INVALID_COORDINATES
    status_code = HTTP_422_UNPROCESSABLE_CONTENT
    user_message = "Invalid coordinates for selected place"


class StateCorruptedError(PlacesError):
    """The service client found its internal references inconsistent."""

    kind = ErrorKind.STATE_CORRUPTED
    status_code = HTTP_503_SERVICE_UNAVAILABLE
    user_message = "Google Maps service corrupted"


class UnclassifiedError(PlacesError):
    """Any failure that matches no other kind."""


ERRORS_BY_KIND: dict[ErrorKind, type[PlacesError]] = {
    cls.kind: cls
    for cls in (
        InitializationTimeoutError,
        CapabilityNotEnabledError,
        AuthorizationDeniedError,
        AccessBlockedError,
        PlaceNotFoundError,
        RequestDeniedError,
        InvalidCoordinatesError,
        StateCorruptedError,
        UnclassifiedError,
    )
}

# Substring markers checked in order; the first match wins.
_MESSAGE_MARKERS: list[tuple[tuple[str, ...], type[PlacesError]]] = [
    (("timeout", "timed out"), InitializationTimeoutError),
    (
        (
            "apinotactivatedmaperror",
            "not activated",
            "not enabled",
            "not authorized to use this api",
            "places library not available",
        ),
        CapabilityNotEnabledError,
    ),
    (
        ("apitargetblockedmaperror", "blocked", "referer restrictions"),
        AccessBlockedError,
    ),
    (
        (
            "requestdeniedmaperror",
            "request_denied",
            "request denied",
            "api key",
            "billing",
        ),
        AuthorizationDeniedError,
    ),
]


def classify_error(exc: BaseException) -> PlacesError:
    """Map an arbitrary exception onto the error taxonomy.

    Args:
        exc: The exception raised by the provider or transport

    Returns:
        A ``PlacesError`` instance; ``exc`` itself when already classified
    """
    if isinstance(exc, PlacesError):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
        return InitializationTimeoutError()

    message = str(exc) or exc.__class__.__name__
    lowered = message.lower()
    for markers, error_cls in _MESSAGE_MARKERS:
        if any(marker in lowered for marker in markers):
            return error_cls(message)
    return UnclassifiedError(message)


def user_message_for(
    exc: BaseException,
    fallback: str = "Failed to select place. Please try again.",
) -> str:
    """Produce the banner text shown to the user for a failure.

    Classified failures get the guidance text of their kind; the raw
    provider message stays in logs and diagnostics only.
    """
    if isinstance(exc, PlacesError) and exc.kind is not ErrorKind.UNCLASSIFIED:
        return type(exc).user_message

    message = str(exc).lower()
    if "api key" in message:
        return "Google Maps API key issue. Please check configuration."
    if "quota" in message or "limit" in message:
        return "API limit reached. Please try again later."
    if "network" in message or isinstance(exc, httpx.TransportError):
        return "Network error. Please check your connection."
    return fallback
