"""Per-source search execution with status instrumentation."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Optional, Tuple

from nuget_client.cancellation import CancellationToken
from nuget_client.errors import CANCELLED_BEFORE_START_MESSAGE, CANCELLED_MESSAGE, TIMED_OUT_MESSAGE, NuGetResult
from nuget_client.models import PackageSource, SearchOptions, SourceStatusSnapshot

if TYPE_CHECKING:
    from nuget_client.search import SearchExecutor


def status_for_result(result: NuGetResult) -> str:
    if result.success or result.error is None:
        return "ok"
    error = result.error
    if error.code == "AuthRequired":
        return "auth_required"
    if error.code == "RateLimit":
        return "rate_limited"
    if error.code == "Network" and error.message == TIMED_OUT_MESSAGE:
        return "timeout"
    if error.code == "Network" and error.message in (CANCELLED_MESSAGE, CANCELLED_BEFORE_START_MESSAGE):
        return "cancelled"
    return "error"


async def run_source_with_status(
    source: PackageSource,
    executor: "SearchExecutor",
    options: SearchOptions,
    *,
    cancel_token: Optional[CancellationToken] = None,
) -> Tuple[NuGetResult, SourceStatusSnapshot]:
    started = time.monotonic()
    result = await executor.search(options, source, cancel_token)
    elapsed_ms = int((time.monotonic() - started) * 1000)

    if result.success:
        status = SourceStatusSnapshot(
            source_id=source.id,
            status="ok",
            result_count=len(result.result or []),
            latency_ms=elapsed_ms,
        )
    else:
        status = SourceStatusSnapshot(
            source_id=source.id,
            status=status_for_result(result),
            latency_ms=elapsed_ms,
            message=f"Search failed: {result.error.message[:100]}" if result.error else "Search failed",
        )
    return result, status
