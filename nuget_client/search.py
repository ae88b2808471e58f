"""Search across one or many package sources."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Sequence

import httpx

from nuget_client.auth import USER_AGENT, filter_headers_for_url
from nuget_client.cancellation import CancellationToken
from nuget_client.errors import CANCELLED_MESSAGE, NuGetResult, fail, ok
from nuget_client.executors import run_source_with_status
from nuget_client.http import RequestExecutor
from nuget_client.metrics import log_source_result, track_search
from nuget_client.models import PackageSearchResult, PackageSource, SearchOptions
from nuget_client.parsers import parse_search_response
from nuget_client.service_index import ServiceIndexResolver
from nuget_client.versioning import compare_versions

logger = logging.getLogger(__name__)


def build_search_url(search_url: str, options: SearchOptions, default_sem_ver_level: str = "2.0.0") -> str:
    """Append query parameters; unset options are omitted, booleans are lowercase."""
    params: Dict[str, str] = {}
    if options.query:
        params["q"] = options.query
    if options.prerelease is not None:
        params["prerelease"] = "true" if options.prerelease else "false"
    if options.skip is not None:
        params["skip"] = str(options.skip)
    if options.take is not None:
        params["take"] = str(options.take)
    params["semVerLevel"] = options.sem_ver_level or default_sem_ver_level
    return str(httpx.URL(search_url).copy_merge_params(params))


def deduplicate_packages(results: Iterable[PackageSearchResult]) -> List[PackageSearchResult]:
    """Collapse results by case-insensitive id, keeping the highest version.

    On equal versions the entry seen first wins, so callers must pass results
    in source configuration order. Source tags are cleared on the way out.
    """
    merged: Dict[str, PackageSearchResult] = {}
    for package in results:
        key = package.id.lower()
        existing = merged.get(key)
        if existing is None or compare_versions(package.version, existing.version) > 0:
            merged[key] = package
    return [package.model_copy(update={"source_id": None, "source_name": None}) for package in merged.values()]


class SearchExecutor:
    def __init__(
        self,
        executor: RequestExecutor,
        resolver: ServiceIndexResolver,
        *,
        timeout: Optional[float] = 30.0,
        sem_ver_level: str = "2.0.0",
        user_agent: str = USER_AGENT,
    ):
        self._executor = executor
        self._resolver = resolver
        self._timeout = timeout
        self._sem_ver_level = sem_ver_level
        self._user_agent = user_agent

    async def search(
        self,
        options: SearchOptions,
        source: PackageSource,
        cancel_token: Optional[CancellationToken] = None,
    ) -> NuGetResult:
        search_url_result = await self._resolver.resolve_search_url(source, cancel_token)
        if not search_url_result.success:
            return search_url_result

        url = build_search_url(search_url_result.result, options, self._sem_ver_level)
        logger.debug(f"[SearchExecutor] Searching {source.id}: {url}")

        result = await self._executor.get_json(
            url,
            source=source,
            headers=filter_headers_for_url(source, url, self._user_agent),
            timeout=self._timeout,
            cancel_token=cancel_token,
            operation="search",
        )
        if not result.success:
            return result

        packages = parse_search_response(result.result)
        logger.debug(
            "[SearchExecutor] Search complete",
            extra={"source_id": source.id, "result_count": len(packages)},
        )
        return ok(packages)

    async def search_multiple_sources(
        self,
        options: SearchOptions,
        sources: Sequence[PackageSource],
        cancel_token: Optional[CancellationToken] = None,
    ) -> NuGetResult:
        """Search every source concurrently and merge what succeeds.

        One source failing never aborts the others. Only when all of them fail
        is a single ``Network`` error returned, listing each source's reason.
        """
        logger.info(
            f"[SearchExecutor] Searching {len(sources)} sources",
            extra={"sources": [source.id for source in sources]},
        )

        with track_search(options.query or "") as metrics:
            outcomes = await asyncio.gather(
                *(
                    run_source_with_status(source, self, options, cancel_token=cancel_token)
                    for source in sources
                )
            )

            tagged: List[PackageSearchResult] = []
            failures: List[str] = []
            for source, (result, status) in zip(sources, outcomes):
                metrics.record_source(
                    source.id,
                    status.status,
                    status.result_count,
                    float(status.latency_ms or 0),
                    status.message,
                )
                log_source_result(source.id, status.status, status.result_count, float(status.latency_ms or 0))

                if result.success:
                    tagged.extend(
                        package.model_copy(update={"source_id": source.id, "source_name": source.display_name})
                        for package in result.result
                    )
                else:
                    reason = result.error.message if result.error else "unknown error"
                    failures.append(f"{source.display_name}: {reason}")
                    logger.warning(f"[SearchExecutor] Source {source.id} failed: {reason}")

            if sources and len(failures) == len(sources):
                message = "All package sources failed"
                if cancel_token is not None and cancel_token.cancelled:
                    message = CANCELLED_MESSAGE
                return fail(
                    "Network",
                    message,
                    details="; ".join(failures),
                )

            packages = deduplicate_packages(tagged)
            metrics.record_results(total=len(tagged), unique=len(packages))
            return ok(packages)
