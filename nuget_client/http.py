"""Request lifecycle for registry calls.

Every outbound GET goes through ``RequestExecutor``. It races the transport
call against the caller's ``CancellationToken`` and a per-call timeout, then
maps the outcome onto the error taxonomy in ``nuget_client.errors``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Awaitable, Callable, Dict, Literal, Optional

import httpx

from nuget_client.cancellation import CancellationToken
from nuget_client.errors import (
    CANCELLED_BEFORE_START_MESSAGE,
    CANCELLED_MESSAGE,
    TIMED_OUT_MESSAGE,
    NuGetError,
    NuGetResult,
    fail,
    fail_with,
    ok,
)
from nuget_client.models import PackageSource
from observability.metrics import registry_request_duration_seconds, registry_request_errors_total
from utils.security import redact_headers, redact_secrets_from_text

logger = logging.getLogger(__name__)

Operation = Literal["service_index", "search", "metadata", "readme"]

TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL, OSError)


def credentials_hint(source: PackageSource) -> str:
    return (
        "Configure credentials in nuget.config: "
        f"<packageSourceCredentials><{source.id}>"
        '<add key="Username" value="..."/>'
        '<add key="ClearTextPassword" value="..."/>'
        f"</{source.id}></packageSourceCredentials>"
    )


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    value = value.strip()
    if not value.isdigit():
        return None
    return int(value)


def classify_response(response: httpx.Response, source: PackageSource) -> Optional[NuGetError]:
    """Map a non-2xx response to a ``NuGetError``; ``None`` for success."""
    status = response.status_code

    if status in (401, 403):
        logger.error(f"[RequestExecutor] Authentication required for {source.display_name} ({status})")
        if source.provider == "azure-artifacts":
            message = (
                f"Azure Artifacts authentication failed for source '{source.display_name}'. "
                "Ensure a personal access token is configured in nuget.config"
            )
        else:
            message = f"Authentication required for source '{source.display_name}'"
        return NuGetError(
            code="AuthRequired",
            message=message,
            status_code=status,
            hint=credentials_hint(source),
        )

    if status == 429:
        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        logger.warning(
            "[RequestExecutor] Rate limited",
            extra={"source_id": source.id, "retry_after": retry_after},
        )
        return NuGetError(
            code="RateLimit",
            message="Too many requests. Please try again later.",
            status_code=status,
            retry_after=retry_after,
        )

    if not response.is_success:
        if status == 404:
            # Expected for optional resources such as readmes
            logger.debug(f"[RequestExecutor] Resource not found (404): {response.request.url}")
        else:
            logger.error(
                f"[RequestExecutor] HTTP error {status} {response.reason_phrase} for URL: {response.request.url}"
            )
        return NuGetError(
            code="ApiError",
            message=f"NuGet API returned {status}: {response.reason_phrase}",
            status_code=status,
        )

    return None


def parse_json_body(response: httpx.Response) -> NuGetResult:
    if not response.content or not response.content.strip():
        return fail("ParseError", "Empty response from NuGet API")
    try:
        return ok(response.json())
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.error(f"[RequestExecutor] Failed to parse JSON: {exc}")
        return fail("ParseError", "Invalid JSON response from NuGet API", details=str(exc))


class RequestExecutor:
    """Runs GET requests with a timeout, caller cancellation and classification."""

    def __init__(self, http_client: httpx.AsyncClient):
        self._http = http_client

    async def get_json(
        self,
        url: str,
        *,
        source: PackageSource,
        headers: Dict[str, str],
        timeout: Optional[float],
        cancel_token: Optional[CancellationToken] = None,
        operation: Operation = "search",
    ) -> NuGetResult:
        self._log_request(url, source, headers)

        async def _send() -> NuGetResult:
            response = await self._http.get(url, headers=headers)
            error = classify_response(response, source)
            if error is not None:
                return fail_with(error)
            return parse_json_body(response)

        return await self._execute(
            _send, url=url, timeout=timeout, cancel_token=cancel_token, operation=operation
        )

    async def get_text(
        self,
        url: str,
        *,
        source: PackageSource,
        headers: Dict[str, str],
        timeout: Optional[float],
        cancel_token: Optional[CancellationToken] = None,
        max_bytes: Optional[int] = None,
        too_large_message: str = "Response too large",
        operation: Operation = "readme",
    ) -> NuGetResult:
        """Stream a text body, aborting once it grows past ``max_bytes``."""
        self._log_request(url, source, headers)

        async def _send() -> NuGetResult:
            async with self._http.stream("GET", url, headers=headers) as response:
                error = classify_response(response, source)
                if error is not None:
                    return fail_with(error)

                chunks = []
                total = 0
                async for chunk in response.aiter_bytes():
                    total += len(chunk)
                    if max_bytes is not None and total > max_bytes:
                        logger.warning(
                            "[RequestExecutor] Response exceeded size limit",
                            extra={"url": url, "size": total, "limit": max_bytes},
                        )
                        return fail("ApiError", too_large_message, details=f"limit={max_bytes} bytes")
                    chunks.append(chunk)

            return ok(b"".join(chunks).decode("utf-8", errors="replace"))

        return await self._execute(
            _send, url=url, timeout=timeout, cancel_token=cancel_token, operation=operation
        )

    async def _execute(
        self,
        send: Callable[[], Awaitable[NuGetResult]],
        *,
        url: str,
        timeout: Optional[float],
        cancel_token: Optional[CancellationToken],
        operation: Operation,
    ) -> NuGetResult:
        if cancel_token is not None and cancel_token.cancelled:
            logger.debug("[RequestExecutor] Request already cancelled", extra={"url": url})
            return self._record(operation, 0.0, fail("Network", CANCELLED_BEFORE_START_MESSAGE))

        started = time.monotonic()
        request_task = asyncio.ensure_future(send())
        waiters = {request_task}
        cancel_waiter = None
        if cancel_token is not None:
            cancel_waiter = asyncio.ensure_future(cancel_token.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()
            if not request_task.done():
                request_task.cancel()

        if request_task in done:
            result = self._settle(request_task, url)
        else:
            # Let the aborted transport call unwind before reporting
            await asyncio.wait({request_task})
            if not request_task.cancelled():
                request_task.exception()
            cancelled_by_caller = cancel_token is not None and cancel_token.cancelled
            logger.warning(
                "[RequestExecutor] Request aborted",
                extra={"url": url, "cancelled_by_caller": cancelled_by_caller, "timeout_seconds": timeout},
            )
            result = fail("Network", CANCELLED_MESSAGE if cancelled_by_caller else TIMED_OUT_MESSAGE)

        return self._record(operation, time.monotonic() - started, result)

    def _log_request(self, url: str, source: PackageSource, headers: Dict[str, str]) -> None:
        extra_names = [source.auth.api_key_header] if source.auth and source.auth.api_key_header else None
        logger.debug(
            "[RequestExecutor] GET",
            extra={"url": url, "source_id": source.id, "headers": redact_headers(headers, extra_names)},
        )

    def _settle(self, request_task: "asyncio.Future[NuGetResult]", url: str) -> NuGetResult:
        try:
            return request_task.result()
        except httpx.TimeoutException as exc:
            logger.warning(f"[RequestExecutor] Transport timeout for URL: {url}")
            return fail("Network", TIMED_OUT_MESSAGE, details=redact_secrets_from_text(str(exc)))
        except TRANSPORT_ERRORS as exc:
            message = redact_secrets_from_text(str(exc)) or type(exc).__name__
            logger.error(f"[RequestExecutor] Network error: {message}")
            return fail("Network", "Failed to connect to NuGet API", details=message)

    def _record(self, operation: Operation, elapsed: float, result: NuGetResult) -> NuGetResult:
        registry_request_duration_seconds.labels(operation=operation).observe(elapsed)
        if not result.success and result.error is not None:
            registry_request_errors_total.labels(operation=operation, code=result.error.code).inc()
        return result
