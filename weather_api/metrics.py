"""Prometheus metrics shared by the middleware and the query layer."""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "weather_api_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = Histogram(
    "weather_api_request_duration_seconds",
    "API request duration in seconds",
    ["method", "endpoint"]
)
DB_QUERY_DURATION = Histogram(
    "weather_api_db_query_duration_seconds",
    "Database query duration in seconds",
    ["operation"]
)
DB_QUERY_FAILURES = Counter(
    "weather_api_db_query_failures_total",
    "Database queries that raised an error",
    ["operation"]
)
