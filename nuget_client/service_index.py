"""Service index discovery and per-source endpoint caches.

A source's ``index.json`` lists resources tagged by capability type. The
resolver fetches it once per source, keeps the parsed document, and caches
each resolved endpoint URL (search, registration base, flat container) per
source id for the lifetime of the resolver. Entries are never evicted; under
concurrent first use the worst case is one redundant fetch.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Literal, Optional

from pydantic import ValidationError

from nuget_client.auth import USER_AGENT, filter_headers_for_url
from nuget_client.cancellation import CancellationToken
from nuget_client.errors import NuGetResult, fail, ok
from nuget_client.http import RequestExecutor
from nuget_client.models import PackageSource, ServiceIndex
from nuget_client.utils.url import strip_trailing_slash
from observability.metrics import service_index_cache_total

logger = logging.getLogger(__name__)

Capability = Literal["search", "registration", "flat_container"]


class ResourceTypes:
    SEARCH_QUERY_SERVICE = "SearchQueryService"
    REGISTRATIONS_BASE_URL = "RegistrationsBaseUrl"
    PACKAGE_BASE_ADDRESS = "PackageBaseAddress"


# Newest registration hive first: 3.6.0 adds SemVer 2.0 and vulnerability data
REGISTRATION_PRECEDENCE = (
    "RegistrationsBaseUrl/3.6.0",
    "RegistrationsBaseUrl/Versioned",
    "RegistrationsBaseUrl/3.4.0",
    ResourceTypes.REGISTRATIONS_BASE_URL,
)

CAPABILITY_RESOURCE_TYPES: Dict[str, tuple] = {
    "search": (ResourceTypes.SEARCH_QUERY_SERVICE,),
    "registration": REGISTRATION_PRECEDENCE,
    "flat_container": (ResourceTypes.PACKAGE_BASE_ADDRESS,),
}

CAPABILITY_LABELS = {
    "search": ResourceTypes.SEARCH_QUERY_SERVICE,
    "registration": ResourceTypes.REGISTRATIONS_BASE_URL,
    "flat_container": ResourceTypes.PACKAGE_BASE_ADDRESS,
}


def find_resource(service_index: ServiceIndex, resource_type: str) -> Optional[str]:
    """First resource whose ``@type`` starts with ``resource_type``.

    ``SearchQueryService`` matches ``SearchQueryService/3.0.0-rc``.
    """
    for resource in service_index.resources:
        if resource.type.startswith(resource_type):
            return resource.id
    return None


def find_first_resource(service_index: ServiceIndex, resource_types: Iterable[str]) -> Optional[str]:
    for resource_type in resource_types:
        url = find_resource(service_index, resource_type)
        if url:
            return url
    return None


def candidate_index_urls(source: PackageSource) -> List[str]:
    """Index URLs to try, in order.

    Artifactory exposes the v3 index under several path shapes depending on
    version and repository layout; every other provider gets exactly the
    configured URL.
    """
    index_url = source.index_url
    candidates = [index_url]
    if source.provider != "artifactory":
        return candidates

    if index_url.endswith("/index.json"):
        stem = index_url[: -len("/index.json")]
        for candidate in (f"{stem}/v3/index.json", f"{stem}/v3"):
            if candidate not in candidates:
                candidates.append(candidate)
    elif "/v3" not in index_url:
        candidate = f"{strip_trailing_slash(index_url)}/v3/index.json"
        if candidate not in candidates:
            candidates.append(candidate)
    return candidates


def parse_service_index(payload: object) -> NuGetResult:
    if not isinstance(payload, dict):
        return fail("ParseError", "Invalid service index: expected a JSON object")
    try:
        return ok(ServiceIndex.model_validate(payload))
    except ValidationError as exc:
        return fail("ParseError", "Invalid service index document", details=str(exc))


class ServiceIndexResolver:
    def __init__(
        self,
        executor: RequestExecutor,
        *,
        timeout: Optional[float] = 5.0,
        user_agent: str = USER_AGENT,
    ):
        self._executor = executor
        self._timeout = timeout
        self._user_agent = user_agent
        self._indexes: Dict[str, ServiceIndex] = {}
        self._search_urls: Dict[str, str] = {}
        self._registration_urls: Dict[str, str] = {}
        self._flat_container_urls: Dict[str, str] = {}
        self._caches: Dict[str, Dict[str, str]] = {
            "search": self._search_urls,
            "registration": self._registration_urls,
            "flat_container": self._flat_container_urls,
        }

    async def fetch_service_index(
        self, source: PackageSource, cancel_token: Optional[CancellationToken] = None
    ) -> NuGetResult:
        cached = self._indexes.get(source.id)
        if cached is not None:
            return ok(cached)

        last_result: Optional[NuGetResult] = None
        for index_url in candidate_index_urls(source):
            logger.debug(f"[ServiceIndexResolver] Fetching service index for {source.id}: {index_url}")
            result = await self._executor.get_json(
                index_url,
                source=source,
                headers=filter_headers_for_url(source, index_url, self._user_agent),
                timeout=self._timeout,
                cancel_token=cancel_token,
                operation="service_index",
            )
            if result.success:
                parsed = parse_service_index(result.result)
                if not parsed.success:
                    logger.error(f"[ServiceIndexResolver] Malformed service index from {index_url}")
                    return parsed
                index = self._indexes.setdefault(source.id, parsed.result)
                logger.debug(
                    "[ServiceIndexResolver] Service index fetched",
                    extra={"source_id": source.id, "resource_count": len(index.resources)},
                )
                return ok(index)

            last_result = result
            # Only a missing/odd path is worth another candidate URL
            if result.error is not None and result.error.code not in ("ApiError", "ParseError"):
                break
            logger.debug(f"[ServiceIndexResolver] Candidate failed: {result.error.message if result.error else ''}")

        return last_result if last_result is not None else fail(
            "ApiError", f"No service index URL configured for source '{source.id}'"
        )

    async def resolve_search_url(
        self, source: PackageSource, cancel_token: Optional[CancellationToken] = None
    ) -> NuGetResult:
        return await self._resolve(source, "search", cancel_token)

    async def resolve_registration_url(
        self, source: PackageSource, cancel_token: Optional[CancellationToken] = None
    ) -> NuGetResult:
        return await self._resolve(source, "registration", cancel_token)

    async def resolve_flat_container_url(
        self, source: PackageSource, cancel_token: Optional[CancellationToken] = None
    ) -> NuGetResult:
        return await self._resolve(source, "flat_container", cancel_token)

    async def _resolve(
        self,
        source: PackageSource,
        capability: Capability,
        cancel_token: Optional[CancellationToken],
    ) -> NuGetResult:
        cache = self._caches[capability]
        cached = cache.get(source.id)
        if cached is not None:
            service_index_cache_total.labels(capability=capability, outcome="hit").inc()
            logger.debug(f"[ServiceIndexResolver] Using cached {capability} URL for {source.id}")
            return ok(cached)

        service_index_cache_total.labels(capability=capability, outcome="miss").inc()
        index_result = await self.fetch_service_index(source, cancel_token)
        if not index_result.success:
            return index_result

        url = find_first_resource(index_result.result, CAPABILITY_RESOURCE_TYPES[capability])
        if not url:
            label = CAPABILITY_LABELS[capability]
            logger.warning(f"[ServiceIndexResolver] {label} not found in service index for {source.id}")
            return fail("ApiError", f"{label} not found in service index", details=f"source={source.id}")

        resolved = cache.setdefault(source.id, strip_trailing_slash(url))
        logger.debug(f"[ServiceIndexResolver] Resolved {capability} URL for {source.id}: {resolved}")
        return ok(resolved)
