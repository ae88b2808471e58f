"""Readme downloads from the flat-container endpoint."""

from __future__ import annotations

import logging
from typing import Optional

from nuget_client.auth import USER_AGENT, filter_headers_for_url
from nuget_client.cancellation import CancellationToken
from nuget_client.errors import NuGetResult, fail
from nuget_client.http import RequestExecutor
from nuget_client.models import PackageSource
from nuget_client.service_index import ServiceIndexResolver

logger = logging.getLogger(__name__)

MAX_README_BYTES = 500 * 1024
README_ACCEPT = "text/plain, text/markdown, */*"


class ReadmeFetcher:
    def __init__(
        self,
        executor: RequestExecutor,
        resolver: ServiceIndexResolver,
        *,
        timeout: Optional[float] = 60.0,
        max_bytes: int = MAX_README_BYTES,
        user_agent: str = USER_AGENT,
    ):
        self._executor = executor
        self._resolver = resolver
        self._timeout = timeout
        self._max_bytes = max_bytes
        self._user_agent = user_agent

    async def get_readme(
        self,
        package_id: str,
        version: str,
        source: PackageSource,
        cancel_token: Optional[CancellationToken] = None,
    ) -> NuGetResult:
        base_result = await self._resolver.resolve_flat_container_url(source, cancel_token)
        if not base_result.success:
            return base_result

        readme_url = f"{base_result.result}/{package_id.lower()}/{version.lower()}/readme"
        logger.debug(
            "[ReadmeFetcher] Fetching package README",
            extra={"package_id": package_id, "version": version, "url": readme_url},
        )

        headers = filter_headers_for_url(source, readme_url, self._user_agent)
        headers["Accept"] = README_ACCEPT

        result = await self._executor.get_text(
            readme_url,
            source=source,
            headers=headers,
            timeout=self._timeout,
            cancel_token=cancel_token,
            max_bytes=self._max_bytes,
            too_large_message=(
                f"README exceeds {self._max_bytes // 1024} KB. "
                f"View the full README on {source.display_name}."
            ),
            operation="readme",
        )
        if not result.success:
            error = result.error
            if error is not None and error.code == "ApiError" and error.status_code == 404:
                return fail("NotFound", "Package README not found", status_code=404)
            return result

        logger.debug("[ReadmeFetcher] README fetched", extra={"size": len(result.result)})
        return result
