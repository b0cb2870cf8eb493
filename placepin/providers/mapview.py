"""Client-side map library.

``MapView`` and ``Marker`` are live, stateful provider objects: they hold
references to each other and are mutated in place. They are owned by the
marker synchronizer and never stored in application state; ``snapshot()``
gives a UI a plain view of them.
"""

import math
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from placepin.providers.types import ProviderLatLng


class Animation(str, Enum):
    """Marker animations."""

    BOUNCE = "BOUNCE"
    DROP = "DROP"


def _to_lat_lng(position: Any) -> ProviderLatLng:
    try:
        point = ProviderLatLng.from_literal(position)
        lat, lng = float(point.lat()), float(point.lng())
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise ValueError(f"not a LatLng: {position!r}") from e
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValueError(f"not a LatLng: {position!r}")
    return ProviderLatLng(lat, lng)


class MapView:
    """A map bound to a UI element."""

    def __init__(
        self,
        element_id: str,
        center: Any,
        zoom: int,
        **options: Any,
    ) -> None:
        self.id = uuid4().hex
        self.element_id = element_id
        self._center = _to_lat_lng(center)
        self._zoom = zoom
        self.options = options
        self._markers: dict[str, "Marker"] = {}

    def set_center(self, position: Any) -> None:
        self._center = _to_lat_lng(position)

    def get_center(self) -> ProviderLatLng:
        return self._center

    def set_zoom(self, zoom: int) -> None:
        if isinstance(zoom, bool) or not isinstance(zoom, int) or zoom < 0:
            raise ValueError(f"invalid zoom: {zoom!r}")
        self._zoom = zoom

    def get_zoom(self) -> int:
        return self._zoom

    @property
    def markers(self) -> list["Marker"]:
        return list(self._markers.values())

    def _attach(self, marker: "Marker") -> None:
        self._markers[marker.id] = marker

    def _detach(self, marker: "Marker") -> None:
        self._markers.pop(marker.id, None)

    def snapshot(self) -> dict[str, Any]:
        """Plain, JSON-safe view of the map and its markers."""
        return {
            "id": self.id,
            "element_id": self.element_id,
            "center": self._center.to_json(),
            "zoom": self._zoom,
            "markers": [marker.snapshot() for marker in self._markers.values()],
        }


class Marker:
    """A pin drawn on at most one map."""

    def __init__(
        self,
        position: Any,
        title: str = "Location",
        map: Optional[MapView] = None,
        animation: Optional[Animation] = None,
    ) -> None:
        self.id = uuid4().hex
        self._position = _to_lat_lng(position)
        self._title = title
        self._map: Optional[MapView] = None
        self._animation = animation
        self.set_map(map)

    def set_map(self, map: Optional[MapView]) -> None:
        """Attach to ``map``; ``None`` removes the marker from its map."""
        if self._map is not None:
            self._map._detach(self)
        self._map = map
        if map is not None:
            map._attach(self)

    def get_map(self) -> Optional[MapView]:
        return self._map

    def get_position(self) -> ProviderLatLng:
        return self._position

    def get_title(self) -> str:
        return self._title

    def set_animation(self, animation: Optional[Animation]) -> None:
        self._animation = animation

    def get_animation(self) -> Optional[Animation]:
        return self._animation

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "position": self._position.to_json(),
            "title": self._title,
            "animation": self._animation.value if self._animation else None,
        }


class MapsLibrary:
    """Factory namespace for map objects, shared by every provider."""

    Animation = Animation

    def create_map(
        self, element_id: str, center: Any, zoom: int, **options: Any
    ) -> MapView:
        return MapView(element_id, center, zoom, **options)

    def create_marker(
        self,
        position: Any,
        title: str,
        map: Optional[MapView] = None,
        animation: Optional[Animation] = None,
    ) -> Marker:
        return Marker(position, title=title, map=map, animation=animation)
