"""Prometheus metrics for the HTTP adapter and the search core."""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "path", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "HTTP request duration in seconds", ["path"]
)
CITY_SEARCHES = Counter(
    "city_searches_total", "City candidate searches issued", ["outcome"]
)
ENRICHMENTS = Counter(
    "card_enrichments_total", "Card enrichment results by outcome", ["outcome"]
)
ENRICHMENT_LATENCY = Histogram(
    "card_enrichment_duration_seconds", "Time to fetch weather for one card"
)
STALE_RESULTS_DISCARDED = Counter(
    "stale_results_discarded_total",
    "Async results dropped because a newer search or request superseded them",
    ["kind"],
)
FAVORITE_TOGGLES = Counter(
    "favorite_toggles_total", "Favorite add/remove operations", ["action", "outcome"]
)
