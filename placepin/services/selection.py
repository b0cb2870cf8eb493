"""Selection resolution workflow.

Turns a chosen suggestion into a fully located, normalized place:

1. unwrap the event into ``(place, query)``
2. look up details when the place has an id but no geometry, degrading to
   the original place if the lookup fails
3. stop with a "no location data" banner if there is still no geometry
4. normalize
5. record history when a query was typed
6. publish the selection, then wait a short settle delay

Each event runs to completion independently; the store keeps whichever
selection finished last.
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Optional

from placepin.core.config import Settings, settings
from placepin.core.errors import (
    ErrorDomain,
    PlacesError,
    classify_error,
    user_message_for,
)
from placepin.core.logging import get_logger
from placepin.geo.models import Place, SelectionRequest
from placepin.geo.normalizer import normalize_place
from placepin.services.client import ServiceClient
from placepin.services.metrics import SELECTIONS
from placepin.services.store import PlaceStore

logger = get_logger().bind(module="selection")

NO_LOCATION_MESSAGE = "Selected place has no location data"


def unwrap_event(event: Any, query: Optional[str] = None) -> tuple[Any, str]:
    """Split a selection event into the chosen object and the typed query.

    Accepts a ``SelectionRequest``, a ``{"place": ..., "query": ...}``
    mapping, or the chosen place/prediction itself.
    """
    if isinstance(event, SelectionRequest):
        return event.place, query if query is not None else event.query
    if isinstance(event, Mapping) and "place" in event and set(event) <= {
        "place",
        "query",
    }:
        inner_query = event.get("query")
        return event.get("place"), query if query is not None else inner_query or ""
    return event, query or ""


def merge_details(
    original: Place,
    details: Place,
    config: Settings | None = None,
) -> Place:
    """Overlay looked-up details on the chosen place.

    Detail fields win, except that empty detail values never erase the
    original's, and the original description is kept (falling back to the
    looked-up address).
    """
    merged = original.model_dump(exclude_none=True)
    for key, value in details.model_dump(exclude_none=True).items():
        if value == "" or value == []:
            continue
        merged[key] = value
    merged["description"] = original.description or details.address or None
    return normalize_place(merged, config)


class SelectionWorkflow:
    """Resolves selection events against the service client into the store."""

    def __init__(
        self,
        client: ServiceClient,
        store: PlaceStore,
        config: Settings | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self.settings = config or settings
        self._tasks: set[asyncio.Task[Optional[Place]]] = set()

    def dispatch(self, event: Any, query: Optional[str] = None) -> "asyncio.Task[Optional[Place]]":
        """Start an independent resolution for ``event``."""
        task = asyncio.create_task(self.resolve(event, query))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every dispatched resolution has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def resolve(self, event: Any, query: Optional[str] = None) -> Optional[Place]:
        """Run the workflow for one event.

        Returns:
            The selected place, or None when the workflow stopped early
        """
        chosen, text = unwrap_event(event, query)
        if chosen is None:
            SELECTIONS.labels(outcome="ignored").inc()
            logger.warning("selection_without_place", query=text)
            return None

        self.store.set_loading(ErrorDomain.MAP, True)
        try:
            return await self._resolve(chosen, text)
        except Exception as e:
            error = classify_error(e)
            SELECTIONS.labels(outcome="failed").inc()
            logger.error(
                "selection_failed",
                kind=error.kind.value,
                error=str(e),
                exc_info=True,
            )
            self.store.set_error(ErrorDomain.MAP, user_message_for(error), kind=error.kind)
            return None
        finally:
            self.store.set_loading(ErrorDomain.MAP, False)

    async def _resolve(self, chosen: Any, text: str) -> Optional[Place]:
        place = normalize_place(chosen, self.settings)

        if place.geometry is None and place.id:
            try:
                details = await self.client.get_details(place.id)
            except PlacesError as e:
                logger.warning(
                    "selection_details_unavailable",
                    place_id=place.id,
                    kind=e.kind.value,
                    error=e.message,
                )
            else:
                place = merge_details(place, details, self.settings)

        if place.geometry is None:
            SELECTIONS.labels(outcome="no_location").inc()
            logger.warning("selection_no_location", place_id=place.id, name=place.name)
            self.store.set_error(ErrorDomain.MAP, NO_LOCATION_MESSAGE)
            return None

        place = normalize_place(place, self.settings)
        if text.strip():
            self.store.add_history(text.strip(), place)

        self.store.clear_error(ErrorDomain.MAP)
        self.store.select(place)
        SELECTIONS.labels(outcome="selected").inc()

        await asyncio.sleep(self.settings.SELECTION_SETTLE_DELAY)
        return place
