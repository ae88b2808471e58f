"""Search observability.

Collects per-source outcomes for one multi-source search and emits a single
structured ``search_complete`` log record plus Prometheus counters.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from observability.metrics import search_results_count, source_search_total

logger = logging.getLogger("nuget_client.metrics")


@dataclass
class SourceMetrics:
    """Metrics for a single source execution."""
    source_id: str
    status: str  # ok, error, timeout, cancelled, auth_required, rate_limited
    result_count: int
    latency_ms: float
    error_message: Optional[str] = None


@dataclass
class SearchMetrics:
    """Aggregated metrics for a single search operation."""
    query: str = ""
    total_results: int = 0
    unique_results: int = 0
    sources_called: int = 0
    sources_succeeded: int = 0
    sources_failed: int = 0
    total_latency_ms: float = 0.0
    source_metrics: List[SourceMetrics] = field(default_factory=list)

    def success_rate(self) -> float:
        if self.sources_called == 0:
            return 0.0
        return self.sources_succeeded / self.sources_called

    def record_source(
        self,
        source_id: str,
        status: str,
        result_count: int,
        latency_ms: float,
        error_message: Optional[str] = None,
    ) -> None:
        self.source_metrics.append(
            SourceMetrics(
                source_id=source_id,
                status=status,
                result_count=result_count,
                latency_ms=latency_ms,
                error_message=error_message,
            )
        )
        self.sources_called += 1
        if status == "ok":
            self.sources_succeeded += 1
            search_results_count.labels(source=source_id).observe(result_count)
        else:
            self.sources_failed += 1
        source_search_total.labels(source=source_id, status=status).inc()

    def record_results(self, total: int, unique: int) -> None:
        self.total_results = total
        self.unique_results = unique


@contextmanager
def track_search(query: str = "") -> Iterator[SearchMetrics]:
    """Track one search; the metrics object is private to this call."""
    metrics = SearchMetrics(query=query)
    started = time.monotonic()
    try:
        yield metrics
    finally:
        metrics.total_latency_ms = (time.monotonic() - started) * 1000
        _log_metrics(metrics)


def _log_metrics(m: SearchMetrics) -> None:
    source_summary = [
        {
            "id": sm.source_id,
            "status": sm.status,
            "results": sm.result_count,
            "latency_ms": round(sm.latency_ms, 1),
        }
        for sm in m.source_metrics
    ]

    log_data = {
        "event": "search_complete",
        "query_length": len(m.query),
        "results": {
            "total": m.total_results,
            "unique": m.unique_results,
        },
        "sources": {
            "called": m.sources_called,
            "succeeded": m.sources_succeeded,
            "failed": m.sources_failed,
            "success_rate": round(m.success_rate(), 2),
            "details": source_summary,
        },
        "latency_ms": round(m.total_latency_ms, 1),
    }

    if m.sources_failed == m.sources_called and m.sources_called > 0:
        logger.error("Search failed - all sources failed", extra=log_data)
    elif m.sources_failed > 0:
        logger.warning("Search completed with source failures", extra=log_data)
    else:
        logger.info("Search completed successfully", extra=log_data)


def log_source_result(source_id: str, status: str, result_count: int, latency_ms: float) -> None:
    logger.info(
        f"Source {source_id} completed",
        extra={
            "event": "source_complete",
            "source_id": source_id,
            "status": status,
            "result_count": result_count,
            "latency_ms": round(latency_ms, 1),
        },
    )
