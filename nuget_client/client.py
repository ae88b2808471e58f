"""Public entry point for registry operations."""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from nuget_client.cancellation import CancellationToken
from nuget_client.config import ApiOptions
from nuget_client.errors import NuGetResult, fail
from nuget_client.http import RequestExecutor
from nuget_client.metadata import MetadataFetcher
from nuget_client.models import PackageSource, SearchOptions
from nuget_client.readme import ReadmeFetcher
from nuget_client.search import SearchExecutor
from nuget_client.service_index import ServiceIndexResolver
from observability.logging import operation_context

logger = logging.getLogger(__name__)

ALL_SOURCES = "all"


class NuGetApiClient:
    """Async client over one or more NuGet v3 sources.

    Every operation returns a ``NuGetResult``; registry failures are never
    raised. Resolved endpoints are cached for the lifetime of the client, so
    reuse one instance rather than creating one per call.

    Args:
        options: Sources, timeouts and defaults. nuget.org only when omitted.
        http_client: Shared ``httpx.AsyncClient``. When omitted the client
            creates and owns one; close it with ``aclose()``.
    """

    def __init__(self, options: Optional[ApiOptions] = None, *, http_client: Optional[httpx.AsyncClient] = None):
        self.options = options or ApiOptions()
        self._owns_http_client = http_client is None
        # Redirects would carry credentials past the origin check
        self._http = http_client or httpx.AsyncClient(follow_redirects=False, timeout=None)

        executor = RequestExecutor(self._http)
        self.resolver = ServiceIndexResolver(
            executor,
            timeout=self.options.service_index_timeout,
            user_agent=self.options.user_agent,
        )
        self.search_executor = SearchExecutor(
            executor,
            self.resolver,
            timeout=self.options.search_timeout,
            sem_ver_level=self.options.sem_ver_level,
            user_agent=self.options.user_agent,
        )
        self.metadata_fetcher = MetadataFetcher(
            executor,
            self.resolver,
            timeout=self.options.metadata_timeout,
            user_agent=self.options.user_agent,
        )
        self.readme_fetcher = ReadmeFetcher(
            executor,
            self.resolver,
            timeout=self.options.readme_timeout,
            max_bytes=self.options.max_readme_bytes,
            user_agent=self.options.user_agent,
        )

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> "NuGetApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def search_packages(
        self,
        options: SearchOptions,
        cancel_token: Optional[CancellationToken] = None,
        source_id: Optional[str] = None,
    ) -> NuGetResult:
        """Search one source by id, or every enabled source when ``source_id`` is None or ``"all"``."""
        with operation_context("search"):
            return await self._search_packages(options, cancel_token, source_id)

    async def _search_packages(
        self,
        options: SearchOptions,
        cancel_token: Optional[CancellationToken],
        source_id: Optional[str],
    ) -> NuGetResult:
        if source_id is None or source_id == ALL_SOURCES:
            sources = self.options.enabled_sources
            if not sources:
                return fail("ApiError", "No enabled package sources configured")
            if len(sources) > 1:
                return await self.search_executor.search_multiple_sources(options, sources, cancel_token)
            return await self.search_executor.search(options, sources[0], cancel_token)

        source = self._find_source(source_id)
        if source is None:
            return fail("ApiError", f"Source '{source_id}' not found or disabled")
        return await self.search_executor.search(options, source, cancel_token)

    async def get_package_index(
        self,
        package_id: str,
        cancel_token: Optional[CancellationToken] = None,
        source_id: Optional[str] = None,
    ) -> NuGetResult:
        source_result = self._select_source(source_id)
        if not source_result.success:
            return source_result
        with operation_context("metadata"):
            return await self.metadata_fetcher.get_package_index(package_id, source_result.result, cancel_token)

    async def get_package_version(
        self,
        package_id: str,
        version: str,
        cancel_token: Optional[CancellationToken] = None,
        source_id: Optional[str] = None,
    ) -> NuGetResult:
        source_result = self._select_source(source_id)
        if not source_result.success:
            return source_result
        with operation_context("metadata"):
            return await self.metadata_fetcher.get_package_version(
                package_id, version, source_result.result, cancel_token
            )

    async def get_package_readme(
        self,
        package_id: str,
        version: str,
        cancel_token: Optional[CancellationToken] = None,
        source_id: Optional[str] = None,
    ) -> NuGetResult:
        source_result = self._select_source(source_id)
        if not source_result.success:
            return source_result
        with operation_context("readme"):
            return await self.readme_fetcher.get_readme(package_id, version, source_result.result, cancel_token)

    def _find_source(self, source_id: str) -> Optional[PackageSource]:
        for source in self.options.enabled_sources:
            if source.id == source_id:
                return source
        return None

    def _select_source(self, source_id: Optional[str]) -> NuGetResult:
        """Named source, or the first enabled one for detail operations."""
        if source_id is not None and source_id != ALL_SOURCES:
            source = self._find_source(source_id)
            if source is None:
                return fail("ApiError", f"Source '{source_id}' not found or disabled")
            return NuGetResult(success=True, result=source)

        enabled: List[PackageSource] = self.options.enabled_sources
        if not enabled:
            return fail("ApiError", "No enabled package sources configured")
        return NuGetResult(success=True, result=enabled[0])


def create_nuget_api_client(
    options: Optional[ApiOptions] = None, *, http_client: Optional[httpx.AsyncClient] = None
) -> NuGetApiClient:
    return NuGetApiClient(options, http_client=http_client)
