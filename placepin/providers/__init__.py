"""Maps provider implementations."""

from placepin.providers.base import MapsProvider, ProviderModule
from placepin.providers.google import GoogleMapsProvider

__all__ = [
    "MapsProvider",
    "ProviderModule",
    "GoogleMapsProvider",
]
