"""Base classes and types for maps providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from placepin.providers.mapview import MapsLibrary

PLACES_CAPABILITY = "places"

DETAIL_FIELDS: list[str] = [
    "name",
    "geometry",
    "formatted_address",
    "place_id",
    "types",
    "photos",
    "rating",
    "user_ratings_total",
    "vicinity",
]


class PlacesStatus(str, Enum):
    """Status codes returned by places requests."""

    OK = "OK"
    ZERO_RESULTS = "ZERO_RESULTS"
    NOT_FOUND = "NOT_FOUND"
    REQUEST_DENIED = "REQUEST_DENIED"
    INVALID_REQUEST = "INVALID_REQUEST"
    OVER_QUERY_LIMIT = "OVER_QUERY_LIMIT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    @classmethod
    def parse(cls, value: Any) -> "PlacesStatus":
        try:
            return cls(str(value))
        except ValueError:
            return cls.UNKNOWN_ERROR


@dataclass
class PredictionsResponse:
    """Result of one autocomplete request."""

    status: PlacesStatus
    predictions: list[Any] = field(default_factory=list)
    error_message: Optional[str] = None


@dataclass
class DetailsResponse:
    """Result of one place details request."""

    status: PlacesStatus
    result: Optional[Any] = None
    error_message: Optional[str] = None


class AutocompleteService(ABC):
    """Handle used for search predictions."""

    @abstractmethod
    async def get_place_predictions(
        self,
        input: str,
        types: Optional[list[str]] = None,
        session_token: Optional[str] = None,
    ) -> PredictionsResponse:
        """Fetch predictions for a partial query.

        Args:
            input: The text typed by the user
            types: Provider-side category hints
            session_token: Groups autocomplete requests for billing

        Returns:
            Status and provider prediction objects
        """
        raise NotImplementedError


class PlacesService(ABC):
    """Handle used for place detail lookups."""

    @abstractmethod
    async def get_details(
        self,
        place_id: str,
        fields: Optional[list[str]] = None,
        session_token: Optional[str] = None,
    ) -> DetailsResponse:
        """Fetch a full place record with geometry."""
        raise NotImplementedError


class PlacesLibrary(ABC):
    """The "places" capability of a loaded provider."""

    @abstractmethod
    def autocomplete_service(self) -> AutocompleteService:
        raise NotImplementedError

    @abstractmethod
    def places_service(self) -> PlacesService:
        raise NotImplementedError

    @abstractmethod
    def new_session_token(self) -> str:
        raise NotImplementedError


@dataclass
class ProviderModule:
    """A loaded provider client: its map library plus optional capabilities."""

    name: str
    maps: MapsLibrary
    places: Optional[PlacesLibrary] = None
    version: str = "unknown"
    libraries: list[str] = field(default_factory=list)

    def has_capability(self, capability: str) -> bool:
        if capability == PLACES_CAPABILITY:
            return self.places is not None
        return capability in self.libraries


class MapsProvider(ABC):
    """Base class for maps providers.

    A provider knows how to load its client module. Loading may be slow and
    may fail; the service client decides when to call it and classifies the
    failures.
    """

    name: str = "provider"

    @abstractmethod
    async def load(self) -> ProviderModule:
        """Load the provider client and return its module."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release transport resources held by the provider."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
