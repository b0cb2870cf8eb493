"""Service client state machine for the external maps provider.

The client owns the loaded provider module and the two handles used for
search and detail lookups. Initialization is lazy and shared: concurrent
callers await a single in-flight task, failures are classified and retried
from scratch on the next call, and a corrupted flag forces a reset before
any further use.
"""

import asyncio
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from placepin.core.config import Settings, settings
from placepin.core.errors import (
    CapabilityNotEnabledError,
    ErrorKind,
    InvalidCoordinatesError,
    PlaceNotFoundError,
    PlacesError,
    RequestDeniedError,
    StateCorruptedError,
    UnclassifiedError,
    classify_error,
)
from placepin.core.logging import get_logger
from placepin.geo.models import Place, Prediction
from placepin.geo.normalizer import normalize_place
from placepin.geo.validator import is_valid_coordinates
from placepin.providers.base import (
    DETAIL_FIELDS,
    PLACES_CAPABILITY,
    AutocompleteService,
    MapsProvider,
    PlacesService,
    PlacesStatus,
    PredictionsResponse,
    ProviderModule,
)
from placepin.providers.mapview import Animation, MapView, Marker
from placepin.services.aggregator import SearchAggregator
from placepin.services.metrics import (
    DETAIL_LOOKUPS,
    MARKERS_CREATED,
    SERVICE_INITIALIZATIONS,
    SERVICE_RESETS,
)

logger = get_logger().bind(module="service_client")

VALIDATION_TYPES = ["country"]


class ServiceState(str, Enum):
    """Lifecycle of the service client."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class ServiceStatus(BaseModel):
    """Introspection snapshot of the client."""

    state: ServiceState
    ready: bool
    corrupted: bool
    provider: str
    provider_version: Optional[str] = None
    failure_kind: Optional[ErrorKind] = None
    failure_message: Optional[str] = None


class ServiceDiagnostics(BaseModel):
    """Status object for operability tooling."""

    initialized: bool
    has_capability: bool
    corrupted: bool
    last_error: Optional[str] = None


class ServiceClient:
    """Ready-checked access to the maps provider.

    Args:
        provider: Provider able to load the client module
        config: Settings; the module-level settings by default
        aggregator: Search aggregator; built from ``config`` by default
    """

    def __init__(
        self,
        provider: MapsProvider,
        config: Settings | None = None,
        aggregator: SearchAggregator | None = None,
    ) -> None:
        self.provider = provider
        self.settings = config or settings
        self.aggregator = aggregator or SearchAggregator(self.settings)

        self._state = ServiceState.UNINITIALIZED
        self._failure: PlacesError | None = None
        self._last_error: str | None = None
        self._corrupted = False
        self._corruption_reason: str | None = None

        self._module: ProviderModule | None = None
        self._autocomplete: AutocompleteService | None = None
        self._places: PlacesService | None = None
        self._session_token: str | None = None

        self._init_task: asyncio.Task[ProviderModule] | None = None
        self._generation = 0

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def failure(self) -> PlacesError | None:
        return self._failure

    # Corruption guard

    def _check_consistency(self) -> None:
        """Flag references that contradict the lifecycle state."""
        if self._state is ServiceState.READY and (
            self._module is None or self._autocomplete is None or self._places is None
        ):
            self.mark_corrupted("ready without provider handles")

    def _heal(self) -> None:
        self._check_consistency()
        if self._corrupted:
            logger.warning(
                "service_corruption_detected",
                reason=self._corruption_reason,
                state=self._state.value,
            )
            self._reset(reason="corrupted")

    def mark_corrupted(self, reason: str) -> None:
        """Flag the client; the next public call resets it first."""
        if not self._corrupted:
            logger.warning("service_marked_corrupted", reason=reason)
        self._corrupted = True
        self._corruption_reason = reason

    # Lifecycle

    async def initialize(self) -> ProviderModule:
        """Make the client ready and return the loaded provider module.

        Raises:
            PlacesError: Classified initialization failure
        """
        while True:
            self._heal()
            if self._state is ServiceState.READY and self._module is not None:
                return self._module

            task = self._init_task
            if task is None:
                task = self._start_initialization()
            generation = self._generation

            try:
                module = await asyncio.shield(task)
            except PlacesError:
                if generation != self._generation:
                    # reset while in flight; the failure belongs to a dead attempt
                    continue
                raise

            if generation == self._generation:
                return module

    def _start_initialization(self) -> "asyncio.Task[ProviderModule]":
        self._generation += 1
        self._state = ServiceState.INITIALIZING
        self._failure = None
        self._init_task = asyncio.create_task(
            self._run_initialization(self._generation)
        )
        logger.info(
            "service_initializing",
            provider=self.provider.name,
            generation=self._generation,
            reuse_module=self._module is not None,
        )
        return self._init_task

    async def _load_module(self) -> ProviderModule:
        if self._module is not None:
            return self._module
        return await asyncio.wait_for(
            self.provider.load(), timeout=self.settings.MAPS_LOAD_TIMEOUT
        )

    async def _run_initialization(self, generation: int) -> ProviderModule:
        try:
            module = await self._load_module()
            if module.places is None or not module.has_capability(PLACES_CAPABILITY):
                raise CapabilityNotEnabledError(
                    "Google Maps Places library not available"
                )
            autocomplete = module.places.autocomplete_service()
            places = module.places.places_service()
            session_token = module.places.new_session_token()
            await self._validate(autocomplete, generation)
        except Exception as e:
            error = classify_error(e)
            SERVICE_INITIALIZATIONS.labels(outcome=error.kind.value).inc()
            logger.error(
                "service_initialization_failed",
                kind=error.kind.value,
                error=error.message,
                generation=generation,
            )
            if generation == self._generation:
                self._state = ServiceState.FAILED
                self._failure = error
                self._last_error = error.message
                self._module = None
                self._init_task = None
            if error is e:
                raise
            raise error from e

        if generation != self._generation:
            SERVICE_INITIALIZATIONS.labels(outcome="discarded").inc()
            logger.info("service_initialization_discarded", generation=generation)
            return module

        self._module = module
        self._autocomplete = autocomplete
        self._places = places
        self._session_token = session_token
        self._state = ServiceState.READY
        self._init_task = None
        SERVICE_INITIALIZATIONS.labels(outcome="ready").inc()
        logger.info(
            "service_ready",
            provider=module.name,
            version=module.version,
            libraries=module.libraries,
        )
        return module

    async def _validate(self, autocomplete: AutocompleteService, generation: int) -> None:
        """Run one cheap query to surface authorization problems early.

        Nothing here fails initialization: denials are logged and recorded
        as the last error, every other outcome is only logged.
        """
        try:
            response = await asyncio.wait_for(
                autocomplete.get_place_predictions(
                    input=self.settings.MAPS_VALIDATION_QUERY,
                    types=VALIDATION_TYPES,
                ),
                timeout=self.settings.MAPS_VALIDATION_TIMEOUT,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "service_validation_timeout",
                timeout=self.settings.MAPS_VALIDATION_TIMEOUT,
            )
            return
        except Exception as e:
            logger.warning("service_validation_failed", error=str(e))
            return

        if response.status is PlacesStatus.REQUEST_DENIED:
            message = response.error_message or "Places API request denied"
            logger.error("service_validation_denied", error_message=message)
            if generation == self._generation:
                self._last_error = message
            return
        logger.info(
            "service_validation_complete",
            status=response.status.value,
            results=len(response.predictions),
        )

    def reset(self) -> None:
        """Force ``UNINITIALIZED``, keeping the loaded provider module."""
        self._reset(reason="manual")

    def _reset(self, reason: str) -> None:
        self._generation += 1
        self._state = ServiceState.UNINITIALIZED
        self._init_task = None
        self._autocomplete = None
        self._places = None
        self._session_token = None
        self._failure = None
        self._last_error = None
        self._corrupted = False
        self._corruption_reason = None
        SERVICE_RESETS.labels(reason=reason).inc()
        logger.info(
            "service_reset",
            reason=reason,
            kept_module=self._module is not None,
        )

    async def close(self) -> None:
        """Reset, drop the module and release provider transports."""
        self._reset(reason="close")
        self._module = None
        await self.provider.close()

    # Introspection

    def is_ready(self) -> bool:
        return (
            self._state is ServiceState.READY
            and not self._corrupted
            and self._autocomplete is not None
            and self._places is not None
        )

    def status(self) -> ServiceStatus:
        return ServiceStatus(
            state=self._state,
            ready=self.is_ready(),
            corrupted=self._corrupted,
            provider=self.provider.name,
            provider_version=self._module.version if self._module else None,
            failure_kind=self._failure.kind if self._failure else None,
            failure_message=self._failure.message if self._failure else None,
        )

    def diagnostics(self) -> ServiceDiagnostics:
        return ServiceDiagnostics(
            initialized=self.is_ready(),
            has_capability=(
                self._module is not None
                and self._module.has_capability(PLACES_CAPABILITY)
            ),
            corrupted=self._corrupted,
            last_error=self._last_error,
        )

    # Operations

    def _handles(self) -> tuple[AutocompleteService, PlacesService]:
        if self._autocomplete is None or self._places is None:
            self.mark_corrupted("provider handles missing after initialization")
            raise StateCorruptedError()
        return self._autocomplete, self._places

    async def search(self, query: str) -> list[Prediction]:
        """Return aggregated predictions for ``query``; never raises."""
        text = query.strip() if isinstance(query, str) else ""
        if len(text) < self.settings.SEARCH_MIN_QUERY_LENGTH:
            return []

        try:
            await self.initialize()
            autocomplete, _ = self._handles()
        except PlacesError as e:
            logger.warning(
                "search_service_unavailable",
                query=text,
                kind=e.kind.value,
                error=e.message,
            )
            return []

        async def fetch(q: str, types: list[str]) -> PredictionsResponse:
            return await autocomplete.get_place_predictions(
                input=q, types=types, session_token=self._session_token
            )

        try:
            return await self.aggregator.aggregate(text, fetch)
        except Exception as e:
            logger.error("search_failed", query=text, error=str(e))
            return []

    async def get_details(self, place_id: str) -> Place:
        """Fetch a normalized place with full geometry.

        Raises:
            PlaceNotFoundError: The provider knows no such place
            RequestDeniedError: The provider refused the lookup
            UnclassifiedError: Any other status, transport failure, or an OK
                response without a location
        """
        await self.initialize()
        _, places = self._handles()

        try:
            response = await places.get_details(
                place_id=place_id,
                fields=DETAIL_FIELDS,
                session_token=self._session_token,
            )
        except Exception as e:
            DETAIL_LOOKUPS.labels(outcome="error").inc()
            logger.error("details_request_failed", place_id=place_id, error=str(e))
            raise UnclassifiedError(f"Place details request failed: {e}") from e
        finally:
            # a details call ends the autocomplete session
            if self._module is not None and self._module.places is not None:
                self._session_token = self._module.places.new_session_token()

        status = response.status
        if status is PlacesStatus.OK and response.result is not None:
            place = normalize_place(response.result, self.settings)
            if place.geometry is None:
                DETAIL_LOOKUPS.labels(outcome="no_geometry").inc()
                raise UnclassifiedError("Place details returned no location")
            DETAIL_LOOKUPS.labels(outcome="ok").inc()
            return place

        DETAIL_LOOKUPS.labels(outcome=status.value.lower()).inc()
        logger.warning(
            "details_lookup_failed",
            place_id=place_id,
            status=status.value,
            error_message=response.error_message,
        )
        if status is PlacesStatus.NOT_FOUND:
            raise PlaceNotFoundError()
        if status is PlacesStatus.REQUEST_DENIED:
            raise RequestDeniedError()
        raise UnclassifiedError(f"Place details API error: {status.value}")

    async def create_map(
        self,
        element_id: str,
        center: Any = None,
        zoom: int | None = None,
        **options: Any,
    ) -> MapView:
        """Create a map bound to ``element_id``.

        Raises:
            InvalidCoordinatesError: ``center`` is not a valid position
        """
        module = await self.initialize()
        if center is None:
            center = self.settings.default_center
        if not is_valid_coordinates(center):
            raise InvalidCoordinatesError(f"Invalid map center: {center!r}")
        return module.maps.create_map(
            element_id,
            center=center,
            zoom=zoom if zoom is not None else self.settings.MAP_CREATE_ZOOM,
            **options,
        )

    def create_marker(
        self,
        map_view: MapView | None,
        position: Any,
        title: str = "Location",
    ) -> Marker | None:
        """Drop a marker on ``map_view``; ``None`` if anything is unusable."""
        self._heal()
        if map_view is None or self._module is None:
            logger.warning(
                "marker_skipped",
                reason="no map" if map_view is None else "provider not loaded",
            )
            return None
        if not is_valid_coordinates(position):
            logger.warning("marker_invalid_coordinates", position=repr(position))
            return None

        try:
            marker = self._module.maps.create_marker(
                position=position,
                title=title,
                map=map_view,
                animation=Animation.DROP,
            )
        except (TypeError, ValueError, AttributeError) as e:
            logger.error("marker_creation_failed", error=str(e), title=title)
            return None

        MARKERS_CREATED.inc()
        return marker
