"""Keeps one map marker in step with the selected place."""

import asyncio
from collections.abc import Callable
from typing import Any, Optional

from placepin.core.config import Settings, settings
from placepin.core.errors import (
    ErrorDomain,
    InvalidCoordinatesError,
    classify_error,
    user_message_for,
)
from placepin.core.logging import get_logger
from placepin.geo.models import Place
from placepin.geo.validator import is_valid_coordinates
from placepin.providers.mapview import Animation, MapView, Marker
from placepin.services.client import ServiceClient
from placepin.services.store import PlaceStore

logger = get_logger().bind(module="markers")

ErrorReporter = Callable[[str], Any]


class MarkerSynchronizer:
    """Reacts to selection changes on one map.

    Tracks the identity of the last processed place so repeated
    notifications for the same place do not churn markers, and owns every
    marker it creates.
    """

    def __init__(
        self,
        client: ServiceClient,
        map_view: MapView,
        config: Settings | None = None,
        on_error: ErrorReporter | None = None,
    ) -> None:
        self.client = client
        self.map_view = map_view
        self.settings = config or settings
        self.on_error = on_error
        self.last_processed_id: Optional[str] = None
        self._markers: list[Marker] = []
        self._timers: list[asyncio.TimerHandle] = []

    @property
    def markers(self) -> list[Marker]:
        return list(self._markers)

    def _report(self, message: str) -> None:
        if self.on_error is not None:
            self.on_error(message)

    def sync(self, place: Optional[Place]) -> Optional[Marker]:
        """Pin ``place`` on the map.

        Returns:
            The new marker, or None when skipped or blocked
        """
        if place is None:
            self.clear()
            self.last_processed_id = None
            return None

        identity = place.identity
        if identity is not None and identity == self.last_processed_id:
            logger.debug("marker_sync_skipped", identity=identity)
            return None
        self.last_processed_id = identity

        self.clear()

        location = place.location
        if not is_valid_coordinates(location):
            error = InvalidCoordinatesError()
            logger.error(
                "marker_invalid_coordinates",
                identity=identity,
                location=location.model_dump() if location else None,
            )
            self._report(error.message)
            return None

        marker = self.add(location, place.name or "Selected Place")
        if marker is None:
            self._report("Failed to place marker for selected place")
            return None

        self._recenter(location)
        self._emphasize(marker)
        logger.info(
            "marker_synced",
            identity=identity,
            lat=location.lat,
            lng=location.lng,
            zoom=self.map_view.get_zoom(),
        )
        return marker

    def add(self, position: Any, title: str = "Location") -> Optional[Marker]:
        """Create and track a marker; None on invalid input."""
        marker = self.client.create_marker(self.map_view, position, title)
        if marker is not None:
            self._markers.append(marker)
        return marker

    def clear(self) -> None:
        """Remove every tracked marker from the map."""
        for marker in self._markers:
            try:
                marker.set_map(None)
            except Exception as e:
                logger.warning("marker_destroy_failed", marker=marker.id, error=str(e))
        self._markers = []

    def center(self, position: Any, zoom: int) -> bool:
        if not is_valid_coordinates(position):
            logger.warning("map_center_invalid_coordinates", position=repr(position))
            return False
        self._recenter(position, zoom)
        return True

    def _recenter(self, position: Any, zoom: int | None = None) -> None:
        try:
            self.map_view.set_center(position)
            self.map_view.set_zoom(zoom if zoom is not None else self.settings.MAP_FOCUS_ZOOM)
        except Exception as e:
            logger.error("map_recenter_failed", error=str(e))
            self._fallback_center()

    def _fallback_center(self) -> None:
        try:
            self.map_view.set_center(self.settings.default_center)
            self.map_view.set_zoom(self.settings.MAP_DEFAULT_ZOOM)
        except Exception as e:
            logger.error("map_fallback_center_failed", error=str(e))

    def _emphasize(self, marker: Marker) -> None:
        marker.set_animation(Animation.BOUNCE)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            marker.set_animation(None)
            return

        def stop() -> None:
            marker.set_animation(None)
            if handle in self._timers:
                self._timers.remove(handle)

        handle = loop.call_later(self.settings.MARKER_BOUNCE_SECONDS, stop)
        self._timers.append(handle)

    def teardown(self) -> None:
        """Destroy markers, stop animations and forget the last place."""
        for handle in self._timers:
            handle.cancel()
        self._timers = []
        for marker in self._markers:
            marker.set_animation(None)
        self.clear()
        self.last_processed_id = None


class MapController:
    """The map consumer: ``map``, ``is_ready``, ``error`` plus helpers.

    Mounting creates the map and subscribes a synchronizer to the store's
    selection; a failed mount can be retried.
    """

    def __init__(
        self,
        client: ServiceClient,
        store: PlaceStore,
        config: Settings | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self.settings = config or settings
        self.map: Optional[MapView] = None
        self.error: Optional[str] = None
        self.synchronizer: Optional[MarkerSynchronizer] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def is_ready(self) -> bool:
        return self.map is not None and self.error is None

    def _report(self, message: str) -> None:
        self.store.set_error(ErrorDomain.MAP, message)

    async def mount(self, element_id: str | None = None, center: Any = None) -> Optional[MapView]:
        """Create the map if needed and start following the selection."""
        if self.map is not None:
            return self.map

        self.store.set_loading(ErrorDomain.MAP, True)
        try:
            map_view = await self.client.create_map(
                element_id or self.settings.MAP_ELEMENT_ID,
                center=center if center is not None else self.settings.default_center,
                zoom=self.settings.MAP_DEFAULT_ZOOM,
            )
        except Exception as e:
            error = classify_error(e)
            self.error = user_message_for(
                error, "Failed to load the map. Please try again."
            )
            logger.error("map_mount_failed", kind=error.kind.value, error=error.message)
            self.store.set_error(ErrorDomain.MAP, self.error, kind=error.kind)
            return None
        finally:
            self.store.set_loading(ErrorDomain.MAP, False)

        self.map = map_view
        self.error = None
        self.synchronizer = MarkerSynchronizer(
            self.client, map_view, self.settings, on_error=self._report
        )
        self._unsubscribe = self.store.subscribe(self.synchronizer.sync)
        logger.info("map_mounted", map_id=map_view.id, element_id=map_view.element_id)

        if self.store.selected_place is not None:
            self.synchronizer.sync(self.store.selected_place)
        return map_view

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self.synchronizer is not None:
            self.synchronizer.teardown()
            self.synchronizer = None
        self.map = None
        logger.info("map_unmounted")

    def add_marker(self, position: Any, title: str = "Location") -> Optional[Marker]:
        if self.synchronizer is None:
            logger.warning("add_marker_without_map")
            return None
        return self.synchronizer.add(position, title)

    def clear_markers(self) -> None:
        if self.synchronizer is not None:
            self.synchronizer.clear()

    def center_map(self, position: Any, zoom: int | None = None) -> bool:
        if self.synchronizer is None:
            logger.warning("center_map_without_map")
            return False
        return self.synchronizer.center(
            position, zoom if zoom is not None else self.settings.MAP_FOCUS_ZOOM
        )

    def snapshot(self) -> dict[str, Any]:
        return {
            "ready": self.is_ready,
            "error": self.error,
            "map": self.map.snapshot() if self.map is not None else None,
            "last_processed_id": (
                self.synchronizer.last_processed_id if self.synchronizer else None
            ),
        }
