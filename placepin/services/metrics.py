"""Prometheus metrics for the place-resolution pipeline."""

from prometheus_client import Counter

# Service client lifecycle
SERVICE_INITIALIZATIONS = Counter(
    "placepin_service_initializations_total",
    "Total number of service client initialization attempts",
    ["outcome"],  # ready, discarded, or the failure kind
)

SERVICE_RESETS = Counter(
    "placepin_service_resets_total",
    "Total number of service client resets",
    ["reason"],  # manual, corrupted, close
)

# Provider requests
SEARCH_QUERIES = Counter(
    "placepin_search_queries_total",
    "Total number of provider prediction queries",
    ["query_type", "outcome"],  # primary/supplementary, ok/empty/error
)

DETAIL_LOOKUPS = Counter(
    "placepin_detail_lookups_total",
    "Total number of place detail lookups",
    ["outcome"],
)

# Selection and map
SELECTIONS = Counter(
    "placepin_selections_total",
    "Total number of selection workflow runs",
    ["outcome"],  # selected, no_location, ignored, failed
)

MARKERS_CREATED = Counter(
    "placepin_markers_created_total",
    "Total number of map markers created",
)
