"""Storage-safe geographic records.

This package provides:
- Plain place, prediction and geometry models
- The coordinate validator gating every map mutation
- The normalizer converting provider objects into stored records
"""

from placepin.geo.models import (
    Bounds,
    Geometry,
    LatLng,
    PhotoRef,
    Place,
    Prediction,
    SearchHistoryEntry,
)
from placepin.geo.normalizer import (
    normalize_geometry,
    normalize_place,
    normalize_prediction,
)
from placepin.geo.validator import is_valid_coordinates, require_valid_coordinates

__all__ = [
    "Bounds",
    "Geometry",
    "LatLng",
    "PhotoRef",
    "Place",
    "Prediction",
    "SearchHistoryEntry",
    "normalize_geometry",
    "normalize_place",
    "normalize_prediction",
    "is_valid_coordinates",
    "require_valid_coordinates",
]
