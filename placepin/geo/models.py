"""Storage-safe place records.

These models are the only shapes that may be kept in application state.
Provider objects are converted into them by ``placepin.geo.normalizer``.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class LatLng(BaseModel):
    """A plain coordinate pair.

    Range checks are left to ``placepin.geo.validator`` so that a stored
    out-of-range value can still be detected and reported before a map
    mutation.
    """

    lat: float
    lng: float


class Bounds(BaseModel):
    """Rectangular extent given by two corners."""

    northeast: LatLng
    southwest: LatLng


class Geometry(BaseModel):
    """Position and optional extent of a place."""

    location: LatLng
    viewport: Optional[Bounds] = None
    bounds: Optional[Bounds] = None


class PhotoRef(BaseModel):
    """Attribution-only photo metadata, never a fetch handle."""

    id: str
    width: int = 400
    height: int = 300
    attributions: List[str] = Field(default_factory=list)


class Prediction(BaseModel):
    """Lightweight search suggestion."""

    id: str
    primary_text: str = ""
    secondary_text: str = ""
    description: str = ""
    types: List[str] = Field(default_factory=list)


class Place(BaseModel):
    """Normalized place; extra plain fields copied from the provider are kept."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: str = ""
    address: str = ""
    description: Optional[str] = None
    types: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    rating_count: Optional[int] = None
    geometry: Optional[Geometry] = None
    photos: List[PhotoRef] = Field(default_factory=list)

    @property
    def identity(self) -> Optional[str]:
        """Identifier used for duplicate suppression: id, else name."""
        return self.id or self.name or None

    @property
    def location(self) -> Optional[LatLng]:
        return self.geometry.location if self.geometry else None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SearchHistoryEntry(BaseModel):
    """One remembered selection."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    query: str
    place: Place
    selected_at: datetime = Field(default_factory=_utcnow)


class SelectionRequest(BaseModel):
    """A "place chosen" event as submitted over HTTP."""

    place: dict[str, Any]
    query: str = ""
