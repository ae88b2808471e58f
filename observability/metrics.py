"""
Prometheus metrics for registry traffic.

Provides RED metrics (Rate, Errors, Duration) per operation class plus
service-index cache and per-source search outcomes.
"""

from prometheus_client import (
    Counter,
    Histogram,
    REGISTRY,
)

# Use the default registry
metrics_registry = REGISTRY

# operation: service_index, search, metadata, readme
registry_request_duration_seconds = Histogram(
    "registry_request_duration_seconds",
    "Registry HTTP request duration in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
    registry=metrics_registry,
)

registry_request_errors_total = Counter(
    "registry_request_errors_total",
    "Total registry request failures by error code",
    ["operation", "code"],
    registry=metrics_registry,
)

# capability: search, registration, flat_container; outcome: hit, miss
service_index_cache_total = Counter(
    "service_index_cache_total",
    "Resolved endpoint cache lookups",
    ["capability", "outcome"],
    registry=metrics_registry,
)

source_search_total = Counter(
    "source_search_total",
    "Per-source search outcomes during multi-source search",
    ["source", "status"],
    registry=metrics_registry,
)

search_results_count = Histogram(
    "search_results_count",
    "Number of search results returned per source",
    ["source"],
    buckets=[0, 1, 5, 10, 20, 50, 100, 1000],
    registry=metrics_registry,
)
