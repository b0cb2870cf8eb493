"""Wiring of the pipeline for one application instance."""

from typing import Any, Optional

from placepin.core.config import Settings, settings
from placepin.core.errors import ErrorDomain, PlacesError, user_message_for
from placepin.core.logging import get_logger
from placepin.geo.models import Place, Prediction
from placepin.providers.base import MapsProvider
from placepin.providers.google import GoogleMapsProvider
from placepin.services.client import ServiceClient, ServiceState
from placepin.services.debounce import Debouncer
from placepin.services.markers import MapController
from placepin.services.selection import SelectionWorkflow
from placepin.services.store import PlaceStore

logger = get_logger().bind(module="session")


class PlacesSession:
    """Owns the client, store, workflow and map of one application.

    Args:
        provider: Maps provider; Google by default
        config: Settings; the module-level settings by default
        client: Prebuilt service client, mainly for tests
    """

    def __init__(
        self,
        provider: MapsProvider | None = None,
        config: Settings | None = None,
        client: ServiceClient | None = None,
    ) -> None:
        self.settings = config or settings
        self.client = client or ServiceClient(
            provider or GoogleMapsProvider(), self.settings
        )
        self.store = PlaceStore(self.settings)
        self.workflow = SelectionWorkflow(self.client, self.store, self.settings)
        self.map = MapController(self.client, self.store, self.settings)
        self.debouncer = Debouncer(self.search_now, self.settings.SEARCH_DEBOUNCE_SECONDS)

    async def start(self) -> None:
        """Mount the map; failures are left on the map banner."""
        await self.map.mount()

    # Search

    def search(self, query: str) -> None:
        """Debounced search; short queries clear suggestions at once."""
        self.store.query = query
        if len(query.strip()) < self.settings.SEARCH_MIN_QUERY_LENGTH:
            self.debouncer.cancel()
            self.store.set_suggestions([])
            return
        self.debouncer.call(query)

    async def search_now(self, query: str) -> list[Prediction]:
        """Search immediately and publish the suggestions."""
        self.store.query = query
        self.store.set_loading(ErrorDomain.SEARCH, True)
        try:
            results = await self.client.search(query)
        finally:
            self.store.set_loading(ErrorDomain.SEARCH, False)

        self.store.set_suggestions(results)
        status = self.client.status()
        failure = self.client.failure
        if status.state is ServiceState.FAILED and failure is not None:
            self.store.set_error(
                ErrorDomain.SEARCH,
                user_message_for(failure, "Search failed. Please try again."),
                kind=status.failure_kind,
            )
        else:
            self.store.clear_error(ErrorDomain.SEARCH)
        return results

    # Selection

    async def select(self, event: Any, query: Optional[str] = None) -> Optional[Place]:
        return await self.workflow.resolve(event, query)

    def clear_selection(self) -> None:
        self.store.select(None)

    def clear_history(self) -> None:
        self.store.clear_history()

    # Errors

    def dismiss_error(self, domain: ErrorDomain) -> None:
        self.store.clear_error(domain)

    async def retry(self, domain: ErrorDomain) -> None:
        """Re-run the operation behind the banner of ``domain``."""
        self.store.clear_error(domain)
        logger.info("retry_requested", domain=domain.value)

        if domain is ErrorDomain.SEARCH:
            if self.store.query:
                await self.search_now(self.store.query)
        elif domain is ErrorDomain.MAP:
            await self.reload_map()
        else:
            self.client.reset()
            try:
                await self.client.initialize()
            except PlacesError as e:
                self.store.set_error(
                    ErrorDomain.SERVICE, user_message_for(e), kind=e.kind
                )

    async def reload_map(self) -> None:
        """Tear the map down and mount it again, re-pinning the selection."""
        self.map.unmount()
        if self.client.state is ServiceState.FAILED:
            self.client.reset()
        await self.map.mount()

    async def close(self) -> None:
        self.debouncer.cancel()
        await self.workflow.drain()
        self.map.unmount()
        await self.client.close()
        logger.info("session_closed")
