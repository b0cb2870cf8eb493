"""Google Maps provider implementation over the Places web service."""

from typing import Any, Optional
from uuid import uuid4

import httpx

from placepin.core.config import settings
from placepin.core.errors import AuthorizationDeniedError
from placepin.core.logging import get_logger
from placepin.providers.base import (
    DETAIL_FIELDS,
    PLACES_CAPABILITY,
    AutocompleteService,
    DetailsResponse,
    MapsProvider,
    PlacesLibrary,
    PlacesService,
    PlacesStatus,
    PredictionsResponse,
    ProviderModule,
)
from placepin.providers.mapview import MapsLibrary
from placepin.providers.types import (
    ProviderPlaceResult,
    ProviderPrediction,
    photo_url_builder,
)

logger = get_logger().bind(module="google_provider")


class _GoogleEndpoint:
    """Shared request plumbing for the places endpoints."""

    def __init__(self, client: httpx.AsyncClient, api_key: str, base_url: str) -> None:
        self._client = client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    async def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        response = await self._client.get(
            f"{self._base_url}/{path}",
            params={**params, "key": self._api_key},
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response body from {path}")
        return data


class GoogleAutocompleteService(_GoogleEndpoint, AutocompleteService):
    """Autocomplete predictions from ``place/autocomplete/json``."""

    async def get_place_predictions(
        self,
        input: str,
        types: Optional[list[str]] = None,
        session_token: Optional[str] = None,
    ) -> PredictionsResponse:
        params = {"input": input}
        if types:
            params["types"] = "|".join(types)
        if session_token:
            params["sessiontoken"] = session_token

        data = await self._get_json("place/autocomplete/json", params)
        status = PlacesStatus.parse(data.get("status"))
        predictions = [
            ProviderPrediction.from_json(item)
            for item in data.get("predictions") or []
            if isinstance(item, dict)
        ]
        logger.debug(
            "autocomplete_response",
            status=status.value,
            count=len(predictions),
            types=types,
        )
        return PredictionsResponse(
            status=status,
            predictions=predictions,
            error_message=data.get("error_message"),
        )


class GooglePlacesService(_GoogleEndpoint, PlacesService):
    """Place details from ``place/details/json``."""

    async def get_details(
        self,
        place_id: str,
        fields: Optional[list[str]] = None,
        session_token: Optional[str] = None,
    ) -> DetailsResponse:
        params = {
            "place_id": place_id,
            "fields": ",".join(fields or DETAIL_FIELDS),
        }
        if session_token:
            params["sessiontoken"] = session_token

        data = await self._get_json("place/details/json", params)
        status = PlacesStatus.parse(data.get("status"))
        raw = data.get("result")
        result = None
        if status is PlacesStatus.OK and isinstance(raw, dict):
            result = ProviderPlaceResult.from_json(
                raw, photo_url_builder(self._base_url, self._api_key)
            )
        logger.debug("details_response", status=status.value, place_id=place_id)
        return DetailsResponse(
            status=status,
            result=result,
            error_message=data.get("error_message"),
        )


class GooglePlacesLibrary(PlacesLibrary):
    """Places capability bound to one HTTP client."""

    def __init__(self, client: httpx.AsyncClient, api_key: str, base_url: str) -> None:
        self._client = client
        self._api_key = api_key
        self._base_url = base_url

    def autocomplete_service(self) -> AutocompleteService:
        return GoogleAutocompleteService(self._client, self._api_key, self._base_url)

    def places_service(self) -> PlacesService:
        return GooglePlacesService(self._client, self._api_key, self._base_url)

    def new_session_token(self) -> str:
        return str(uuid4())


class GoogleMapsProvider(MapsProvider):
    """Google Maps provider.

    The HTTP client is created lazily on ``load`` and reused across loads;
    pass ``http_client`` to supply a preconfigured one (it is then not closed
    by ``close``).
    """

    name = "google"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        libraries: list[str] | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self.base_url = base_url or settings.GOOGLE_MAPS_BASE_URL
        self.libraries = list(libraries or settings.GOOGLE_MAPS_LIBRARIES)
        self.timeout = timeout or settings.GOOGLE_MAPS_HTTP_TIMEOUT
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def api_key(self) -> str | None:
        """Get the API key, falling back to settings if not explicitly set."""
        if self._api_key is None:
            self._api_key = settings.GOOGLE_MAPS_API_KEY
        return self._api_key

    async def load(self) -> ProviderModule:
        api_key = self.api_key
        if not api_key:
            raise AuthorizationDeniedError(
                "Google Maps API key not found. Set GOOGLE_MAPS_API_KEY."
            )
        logger.info("google_provider_loading", key_prefix=api_key[:6] + "...")

        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)

        places = None
        if PLACES_CAPABILITY in self.libraries:
            places = GooglePlacesLibrary(self._client, api_key, self.base_url)

        return ProviderModule(
            name=self.name,
            maps=MapsLibrary(),
            places=places,
            version="weekly",
            libraries=self.libraries,
        )

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
