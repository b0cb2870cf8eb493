"""Test fixture package for placepin.

Contains:
- A scripted in-memory maps provider
- Builders for provider-shaped predictions and place results
"""

from .provider import (
    PRIMARY,
    SUPPLEMENTARY,
    VALIDATION,
    FakeProvider,
    details_ok,
    place_result,
    prediction,
    predictions_ok,
)

__all__ = [
    "PRIMARY",
    "SUPPLEMENTARY",
    "VALIDATION",
    "FakeProvider",
    "details_ok",
    "place_result",
    "prediction",
    "predictions_ok",
]
