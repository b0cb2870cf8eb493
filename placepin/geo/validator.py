"""Geographic coordinate validation.

A single predicate gates every map-mutating operation: a position is only
accepted when both components are real, finite numbers inside the WGS84
ranges.
"""

import math
from collections.abc import Mapping
from numbers import Real
from typing import Any

from placepin.core.errors import InvalidCoordinatesError
from placepin.geo.models import LatLng

LAT_RANGE = (-90.0, 90.0)
LNG_RANGE = (-180.0, 180.0)


def _component(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


def _is_finite_number(value: Any) -> bool:
    # bool is a Real subclass; True/False are not coordinates
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def is_valid_coordinates(value: Any) -> bool:
    """Check if a value is a well-formed, in-range ``{lat, lng}`` pair.

    Args:
        value: A mapping, ``LatLng`` or any object with ``lat``/``lng``
            attributes. Callable accessors are not accepted.

    Returns:
        True if both components are finite numbers within range
    """
    if value is None:
        return False

    lat = _component(value, "lat")
    lng = _component(value, "lng")
    if not (_is_finite_number(lat) and _is_finite_number(lng)):
        return False

    return (
        LAT_RANGE[0] <= lat <= LAT_RANGE[1]
        and LNG_RANGE[0] <= lng <= LNG_RANGE[1]
    )


def require_valid_coordinates(value: Any) -> LatLng:
    """Return the position as a ``LatLng`` or raise ``InvalidCoordinatesError``."""
    if not is_valid_coordinates(value):
        raise InvalidCoordinatesError(f"Invalid coordinates: {value!r}")
    return LatLng(lat=float(_component(value, "lat")), lng=float(_component(value, "lng")))
