"""Registration metadata: the version index of a package and per-version details."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from nuget_client.auth import USER_AGENT, filter_headers_for_url
from nuget_client.cancellation import CancellationToken
from nuget_client.errors import NuGetResult, fail, ok
from nuget_client.http import RequestExecutor
from nuget_client.models import PackageIndex, PackageSource, PackageVersionSummary
from nuget_client.parsers import parse_package_version_details, parse_version_summary
from nuget_client.service_index import ServiceIndexResolver
from nuget_client.versioning import version_sort_key

logger = logging.getLogger(__name__)


def _is_not_found(result: NuGetResult) -> bool:
    return result.error is not None and result.error.code == "ApiError" and result.error.status_code == 404


class MetadataFetcher:
    """Fetches registration documents through the registration base endpoint.

    Registration indexes either inline their pages (small packages) or link to
    them by ``@id``. Linked pages and catalog entries may live on another
    host, so each follow-up fetch gets headers scoped to its own URL.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        resolver: ServiceIndexResolver,
        *,
        timeout: Optional[float] = 30.0,
        user_agent: str = USER_AGENT,
    ):
        self._executor = executor
        self._resolver = resolver
        self._timeout = timeout
        self._user_agent = user_agent

    async def get_package_index(
        self,
        package_id: str,
        source: PackageSource,
        cancel_token: Optional[CancellationToken] = None,
    ) -> NuGetResult:
        base_result = await self._resolver.resolve_registration_url(source, cancel_token)
        if not base_result.success:
            return base_result

        index_url = f"{base_result.result}/{package_id.lower()}/index.json"
        logger.info(
            "[MetadataFetcher] Fetching package index",
            extra={"package_id": package_id, "url": index_url, "source_id": source.id},
        )

        result = await self._get(index_url, source, cancel_token)
        if not result.success:
            if _is_not_found(result):
                logger.warning(f"[MetadataFetcher] Package not found (404): {package_id}")
                return fail("PackageNotFound", f"Package '{package_id}' not found", status_code=404)
            return result

        document = result.result
        if not isinstance(document, dict):
            return fail("ParseError", "Invalid registration index: expected a JSON object")

        versions_result = await self._collect_versions(document, source, cancel_token)
        if not versions_result.success:
            return versions_result

        versions: List[PackageVersionSummary] = sorted(
            versions_result.result, key=lambda summary: version_sort_key(summary.version), reverse=True
        )
        logger.debug(
            "[MetadataFetcher] Package index fetched",
            extra={"package_id": package_id, "total_versions": len(versions)},
        )
        return ok(PackageIndex(id=package_id, versions=versions, total_versions=len(versions)))

    async def get_package_version(
        self,
        package_id: str,
        version: str,
        source: PackageSource,
        cancel_token: Optional[CancellationToken] = None,
    ) -> NuGetResult:
        base_result = await self._resolver.resolve_registration_url(source, cancel_token)
        if not base_result.success:
            return base_result

        leaf_url = f"{base_result.result}/{package_id.lower()}/{version.lower()}.json"
        logger.debug(
            "[MetadataFetcher] Fetching package version details",
            extra={"package_id": package_id, "version": version, "url": leaf_url},
        )

        result = await self._get(leaf_url, source, cancel_token)
        if not result.success:
            if _is_not_found(result):
                return fail(
                    "VersionNotFound",
                    f"Version '{version}' of package '{package_id}' not found",
                    status_code=404,
                )
            return result

        leaf = result.result
        if not isinstance(leaf, dict):
            return fail("ParseError", "Invalid registration leaf: expected a JSON object")

        catalog_entry = leaf.get("catalogEntry")
        if isinstance(catalog_entry, str):
            logger.debug(f"[MetadataFetcher] Fetching catalog entry: {catalog_entry}")
            catalog_result = await self._get(catalog_entry, source, cancel_token)
            if not catalog_result.success:
                return catalog_result
            if not isinstance(catalog_result.result, dict):
                return fail("ParseError", "Invalid catalog entry: expected a JSON object")
            leaf = {**leaf, "catalogEntry": catalog_result.result}

        try:
            return ok(parse_package_version_details(leaf))
        except ValueError as exc:
            logger.error(f"[MetadataFetcher] Failed to parse registration leaf: {exc}")
            return fail("ParseError", "Invalid registration leaf document", details=str(exc))

    async def _collect_versions(
        self,
        document: Dict[str, Any],
        source: PackageSource,
        cancel_token: Optional[CancellationToken],
    ) -> NuGetResult:
        pages = document.get("items")
        if pages is None:
            return ok([])
        if not isinstance(pages, list):
            return fail("ParseError", "Invalid registration index: items is not a list")

        versions: List[PackageVersionSummary] = []
        for page in pages:
            if not isinstance(page, dict):
                continue

            page_items = page.get("items")
            if page_items is None and isinstance(page.get("@id"), str):
                page_url = page["@id"]
                logger.debug(f"[MetadataFetcher] Fetching registration page: {page_url}")
                page_result = await self._get(page_url, source, cancel_token)
                if not page_result.success:
                    return page_result
                page_document = page_result.result
                page_items = page_document.get("items") if isinstance(page_document, dict) else None

            if not isinstance(page_items, list):
                continue
            for item in page_items:
                try:
                    versions.append(parse_version_summary(item))
                except ValueError as exc:
                    logger.warning(f"[MetadataFetcher] Skipping version summary: {exc}")

        return ok(versions)

    async def _get(
        self, url: str, source: PackageSource, cancel_token: Optional[CancellationToken]
    ) -> NuGetResult:
        return await self._executor.get_json(
            url,
            source=source,
            headers=filter_headers_for_url(source, url, self._user_agent),
            timeout=self._timeout,
            cancel_token=cancel_token,
            operation="metadata",
        )
