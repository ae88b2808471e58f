"""
Observability for the NuGet registry client.

Provides:
- Structured logging stamped with a per-operation id
- Prometheus metrics for registry requests and cache behaviour
"""

from .logging import get_operation_id, operation_context, setup_logging
from .metrics import (
    metrics_registry,
    registry_request_duration_seconds,
    registry_request_errors_total,
    search_results_count,
    service_index_cache_total,
    source_search_total,
)

__all__ = [
    "get_operation_id",
    "metrics_registry",
    "operation_context",
    "registry_request_duration_seconds",
    "registry_request_errors_total",
    "search_results_count",
    "service_index_cache_total",
    "setup_logging",
    "source_search_total",
]
