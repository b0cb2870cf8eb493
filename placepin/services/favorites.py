"""REST client for the favorites service."""

import json
from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from placepin.core.config import settings
from placepin.core.errors import InvalidCoordinatesError
from placepin.core.logging import get_logger
from placepin.geo.models import Place
from placepin.geo.normalizer import normalize_place
from placepin.geo.validator import is_valid_coordinates

logger = get_logger().bind(module="favorites")


class Favorite(BaseModel):
    """A favorite as exchanged with the favorites service (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[int] = None
    place_id: str
    place_name: str = ""
    place_address: str = ""
    latitude: float
    longitude: float
    place_types: str = "[]"
    rating: Optional[float] = None
    photo_reference: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_place(cls, place: Any, notes: Optional[str] = None) -> "Favorite":
        """Build the request payload from any place shape.

        Raises:
            InvalidCoordinatesError: The place has no valid location
            ValueError: The place has no identifier
        """
        normalized = place if isinstance(place, Place) else normalize_place(place)
        if not normalized.id:
            raise ValueError("Favorite requires a place id")
        location = normalized.location
        if not is_valid_coordinates(location):
            raise InvalidCoordinatesError(
                f"Cannot favorite place {normalized.id} without valid coordinates"
            )
        return cls(
            place_id=normalized.id,
            place_name=normalized.name or normalized.description or "",
            place_address=normalized.address,
            latitude=location.lat,
            longitude=location.lng,
            place_types=json.dumps(normalized.types),
            rating=normalized.rating,
            photo_reference=normalized.photos[0].id if normalized.photos else None,
            notes=notes if notes is not None else "",
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(
            by_alias=True,
            mode="json",
            exclude={"id", "is_active", "created_at", "updated_at"},
        )


class FavoritesClient:
    """Async client for ``{FAVORITES_API_URL}/favorites``."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = f"{(base_url or settings.FAVORITES_API_URL).rstrip('/')}/favorites"
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout or settings.FAVORITES_TIMEOUT,
            headers={"Content-Type": "application/json"},
        )
        self._owns_client = http_client is None

    def _url(self, place_id: str | None = None, suffix: str = "") -> str:
        if place_id is None:
            return self.base_url
        return f"{self.base_url}/{quote(place_id, safe='')}{suffix}"

    async def list_favorites(self) -> list[Favorite]:
        response = await self._client.get(self._url())
        response.raise_for_status()
        favorites = [Favorite.model_validate(item) for item in response.json()]
        logger.info("favorites_fetched", count=len(favorites))
        return favorites

    async def get_favorite(self, place_id: str) -> Favorite | None:
        response = await self._client.get(self._url(place_id))
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        data = response.json().get("data")
        return Favorite.model_validate(data) if data else None

    async def add_favorite(self, place: Any, notes: str | None = None) -> Favorite:
        """Save ``place`` as a favorite.

        Raises:
            InvalidCoordinatesError: The place has no valid location
            httpx.HTTPStatusError: The service rejected the request
        """
        favorite = Favorite.from_place(place, notes)
        response = await self._client.post(self._url(), json=favorite.to_payload())
        response.raise_for_status()
        logger.info("favorite_added", place_id=favorite.place_id)
        return Favorite.model_validate(response.json()["data"])

    async def remove_favorite(self, place_id: str) -> dict[str, Any]:
        response = await self._client.delete(self._url(place_id))
        response.raise_for_status()
        logger.info("favorite_removed", place_id=place_id)
        return response.json()

    async def is_favorite(self, place_id: str) -> bool:
        response = await self._client.get(self._url(place_id, "/check"))
        response.raise_for_status()
        return bool(response.json().get("isFavorite", False))

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
