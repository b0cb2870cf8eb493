"""Search aggregation over primary and supplementary prediction queries."""

from collections.abc import Awaitable, Callable
from typing import Any

from placepin.core.config import Settings, settings
from placepin.core.logging import get_logger
from placepin.geo.models import Prediction
from placepin.geo.normalizer import normalize_prediction
from placepin.providers.base import PlacesStatus, PredictionsResponse
from placepin.services.metrics import SEARCH_QUERIES

logger = get_logger().bind(module="aggregator")

PRIMARY_TYPES = ["establishment", "geocode"]
SUPPLEMENTARY_TYPES = ["locality", "sublocality", "neighborhood"]

PredictionFetcher = Callable[[str, list[str]], Awaitable[PredictionsResponse]]


class SearchAggregator:
    """Merges a primary and an optional supplementary query into one list.

    The primary query is biased toward places and addresses. When it returns
    some, but not enough, results a second query with broader locality hints
    is issued and its new entries are appended. Results are deduplicated by
    place identifier and capped.
    """

    def __init__(self, config: Settings | None = None) -> None:
        self.settings = config or settings

    async def _query(
        self,
        fetch: PredictionFetcher,
        query: str,
        types: list[str],
        query_type: str,
    ) -> list[Prediction]:
        """Run one provider query; any failure degrades to an empty list."""
        try:
            response = await fetch(query, types)
        except Exception as e:
            SEARCH_QUERIES.labels(query_type=query_type, outcome="error").inc()
            logger.warning(
                "search_query_failed",
                query_type=query_type,
                query=query,
                error=str(e),
                error_type=e.__class__.__name__,
            )
            return []

        if response.status is PlacesStatus.ZERO_RESULTS:
            SEARCH_QUERIES.labels(query_type=query_type, outcome="empty").inc()
            return []
        if response.status is not PlacesStatus.OK:
            SEARCH_QUERIES.labels(query_type=query_type, outcome="error").inc()
            logger.warning(
                "search_query_degraded",
                query_type=query_type,
                query=query,
                status=response.status.value,
                error_message=response.error_message,
            )
            return []

        SEARCH_QUERIES.labels(query_type=query_type, outcome="ok").inc()
        return [normalize_prediction(p) for p in response.predictions]

    def merge(self, *result_sets: list[Prediction]) -> list[Prediction]:
        """Concatenate result sets in order, keeping the first of each id."""
        limit = self.settings.SEARCH_MAX_RESULTS
        seen: set[str] = set()
        merged: list[Prediction] = []
        for results in result_sets:
            for prediction in results:
                if len(merged) >= limit:
                    return merged
                if prediction.id in seen:
                    continue
                seen.add(prediction.id)
                merged.append(prediction)
        return merged

    async def aggregate(self, query: Any, fetch: PredictionFetcher) -> list[Prediction]:
        """Search for predictions matching ``query``.

        Args:
            query: Raw user input; trimmed before use
            fetch: Coroutine function ``(query, types) -> PredictionsResponse``

        Returns:
            At most ``SEARCH_MAX_RESULTS`` predictions, primary results first
        """
        text = query.strip() if isinstance(query, str) else ""
        if len(text) < self.settings.SEARCH_MIN_QUERY_LENGTH:
            return []

        primary = await self._query(fetch, text, PRIMARY_TYPES, "primary")
        if not primary:
            logger.debug("search_no_primary_results", query=text)
            return []

        supplementary: list[Prediction] = []
        if len(primary) < self.settings.SEARCH_SUFFICIENT_RESULTS:
            supplementary = await self._query(
                fetch, text, SUPPLEMENTARY_TYPES, "supplementary"
            )

        results = self.merge(primary, supplementary)
        logger.info(
            "search_aggregated",
            query=text,
            primary=len(primary),
            supplementary=len(supplementary),
            total=len(results),
        )
        return results
