"""Provider-shaped objects.

These mirror the live objects a maps client hands back: coordinates are
exposed through accessor methods, extents through corner getters and photos
carry a fetch capability bound to the provider credentials. None of them may
be stored in application state; ``placepin.geo.normalizer`` converts them.
"""

from collections.abc import Callable, Mapping
from typing import Any, Optional
from urllib.parse import urlencode


class ProviderLatLng:
    """Immutable coordinate exposed through ``lat()`` / ``lng()`` accessors."""

    __slots__ = ("_lat", "_lng")

    def __init__(self, lat: float, lng: float) -> None:
        self._lat = lat
        self._lng = lng

    def lat(self) -> float:
        return self._lat

    def lng(self) -> float:
        return self._lng

    def to_json(self) -> dict[str, float]:
        return {"lat": self._lat, "lng": self._lng}

    @classmethod
    def from_literal(cls, value: Any) -> "ProviderLatLng":
        """Build from a mapping or any object with plain or callable lat/lng."""
        if isinstance(value, ProviderLatLng):
            return value
        if isinstance(value, Mapping):
            return cls(value["lat"], value["lng"])
        lat, lng = value.lat, value.lng
        return cls(lat() if callable(lat) else lat, lng() if callable(lng) else lng)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProviderLatLng):
            return NotImplemented
        return self._lat == other._lat and self._lng == other._lng

    def __repr__(self) -> str:
        return f"ProviderLatLng({self._lat}, {self._lng})"


class ProviderLatLngBounds:
    """Extent exposed through corner getters."""

    def __init__(self, southwest: ProviderLatLng, northeast: ProviderLatLng) -> None:
        self._southwest = southwest
        self._northeast = northeast

    def get_north_east(self) -> ProviderLatLng:
        return self._northeast

    def get_south_west(self) -> ProviderLatLng:
        return self._southwest

    def contains(self, point: ProviderLatLng) -> bool:
        return (
            self._southwest.lat() <= point.lat() <= self._northeast.lat()
            and self._southwest.lng() <= point.lng() <= self._northeast.lng()
        )


class ProviderGeometry:
    """Geometry block of a provider place result."""

    def __init__(
        self,
        location: Optional[ProviderLatLng],
        viewport: Optional[ProviderLatLngBounds] = None,
        bounds: Optional[ProviderLatLngBounds] = None,
    ) -> None:
        self.location = location
        self.viewport = viewport
        self.bounds = bounds


class ProviderPhoto:
    """Photo handle able to fetch imagery with the provider credentials."""

    def __init__(
        self,
        width: int,
        height: int,
        html_attributions: list[str],
        photo_reference: str,
        url_builder: Callable[[str, int], str],
    ) -> None:
        self.width = width
        self.height = height
        self.html_attributions = html_attributions
        self.photo_reference = photo_reference
        self._url_builder = url_builder

    def get_url(self, max_width: int = 400) -> str:
        """Return a signed URL for the photo at the requested width."""
        return self._url_builder(self.photo_reference, max_width)


def photo_url_builder(base_url: str, api_key: str) -> Callable[[str, int], str]:
    """Bind a photo URL factory to a base URL and key."""

    def build(reference: str, max_width: int) -> str:
        query = urlencode(
            {"photoreference": reference, "maxwidth": max_width, "key": api_key}
        )
        return f"{base_url.rstrip('/')}/place/photo?{query}"

    return build


class ProviderPrediction:
    """Autocomplete prediction as returned by the provider."""

    def __init__(
        self,
        place_id: str,
        description: str,
        structured_formatting: Optional[dict[str, Any]] = None,
        types: Optional[list[str]] = None,
        matched_substrings: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        self.place_id = place_id
        self.description = description
        self.structured_formatting = structured_formatting or {}
        self.types = types or []
        self.matched_substrings = matched_substrings or []

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ProviderPrediction":
        return cls(
            place_id=str(data.get("place_id", "")),
            description=str(data.get("description", "")),
            structured_formatting=dict(data.get("structured_formatting") or {}),
            types=list(data.get("types") or []),
            matched_substrings=list(data.get("matched_substrings") or []),
        )


_PLACE_FIELDS = {
    "place_id",
    "name",
    "formatted_address",
    "vicinity",
    "types",
    "rating",
    "user_ratings_total",
    "geometry",
    "photos",
}


def _bounds_from_json(data: Any) -> Optional[ProviderLatLngBounds]:
    if not isinstance(data, Mapping):
        return None
    try:
        return ProviderLatLngBounds(
            southwest=ProviderLatLng.from_literal(data["southwest"]),
            northeast=ProviderLatLng.from_literal(data["northeast"]),
        )
    except (KeyError, TypeError, AttributeError):
        return None


class ProviderPlaceResult:
    """Place details result with live geometry and photo objects.

    Fields outside the known set are kept as plain attributes, the way a
    provider client exposes whatever the backend sent.
    """

    def __init__(self, **fields: Any) -> None:
        self.place_id: Optional[str] = fields.pop("place_id", None)
        self.name: Optional[str] = fields.pop("name", None)
        self.formatted_address: Optional[str] = fields.pop("formatted_address", None)
        self.vicinity: Optional[str] = fields.pop("vicinity", None)
        self.types: list[str] = list(fields.pop("types", None) or [])
        self.rating: Optional[float] = fields.pop("rating", None)
        self.user_ratings_total: Optional[int] = fields.pop("user_ratings_total", None)
        self.geometry: Optional[ProviderGeometry] = fields.pop("geometry", None)
        self.photos: list[ProviderPhoto] = list(fields.pop("photos", None) or [])
        for key, value in fields.items():
            setattr(self, key, value)

    @classmethod
    def from_json(
        cls,
        data: Mapping[str, Any],
        url_builder: Callable[[str, int], str],
    ) -> "ProviderPlaceResult":
        geometry = None
        raw_geometry = data.get("geometry")
        if isinstance(raw_geometry, Mapping):
            location = raw_geometry.get("location")
            geometry = ProviderGeometry(
                location=(
                    ProviderLatLng.from_literal(location)
                    if isinstance(location, Mapping)
                    else None
                ),
                viewport=_bounds_from_json(raw_geometry.get("viewport")),
                bounds=_bounds_from_json(raw_geometry.get("bounds")),
            )

        photos = [
            ProviderPhoto(
                width=int(photo.get("width") or 400),
                height=int(photo.get("height") or 300),
                html_attributions=list(photo.get("html_attributions") or []),
                photo_reference=str(photo.get("photo_reference", "")),
                url_builder=url_builder,
            )
            for photo in data.get("photos") or []
            if isinstance(photo, Mapping)
        ]

        extras = {k: v for k, v in data.items() if k not in _PLACE_FIELDS}
        return cls(
            place_id=data.get("place_id"),
            name=data.get("name"),
            formatted_address=data.get("formatted_address"),
            vicinity=data.get("vicinity"),
            types=data.get("types"),
            rating=data.get("rating"),
            user_ratings_total=data.get("user_ratings_total"),
            geometry=geometry,
            photos=photos,
            **extras,
        )
