"""Tests for readme downloads."""

import httpx
import pytest

from fakes import service_index
from nuget_client.readme import MAX_README_BYTES, ReadmeFetcher
from nuget_client.service_index import ServiceIndexResolver

FLAT = "https://api.example.org/flat"
README_URL = f"{FLAT}/newtonsoft.json/13.0.3/readme"


@pytest.fixture
def fetcher(executor):
    return ReadmeFetcher(executor, ServiceIndexResolver(executor), timeout=5.0)


@pytest.fixture
def flat_registry(registry, public_source):
    registry.add(public_source.index_url, service_index(flat=f"{FLAT}/"))
    return registry


@pytest.mark.asyncio
async def test_readme_is_returned_as_text(flat_registry, fetcher, public_source):
    flat_registry.add(README_URL, httpx.Response(200, text="# Json.NET\n\nPopular JSON framework."))

    result = await fetcher.get_readme("Newtonsoft.Json", "13.0.3", public_source)

    assert result.success
    assert result.result.startswith("# Json.NET")
    request = flat_registry.last_request(README_URL)
    assert "text/markdown" in request.headers["Accept"]


@pytest.mark.asyncio
async def test_missing_readme_is_not_found(flat_registry, fetcher, public_source):
    result = await fetcher.get_readme("Newtonsoft.Json", "13.0.3", public_source)

    assert result.error.code == "NotFound"


@pytest.mark.asyncio
async def test_oversized_readme_points_at_registry_site(flat_registry, fetcher, public_source):
    flat_registry.add(README_URL, httpx.Response(200, content=b"a" * (MAX_README_BYTES + 1)))

    result = await fetcher.get_readme("Newtonsoft.Json", "13.0.3", public_source)

    assert result.error.code == "ApiError"
    assert "nuget.org" in result.error.message


@pytest.mark.asyncio
async def test_readme_at_exact_cap_is_accepted(flat_registry, fetcher, public_source):
    flat_registry.add(README_URL, httpx.Response(200, content=b"a" * MAX_README_BYTES))

    result = await fetcher.get_readme("Newtonsoft.Json", "13.0.3", public_source)

    assert result.success
    assert len(result.result) == MAX_README_BYTES


@pytest.mark.asyncio
async def test_missing_flat_container_capability(registry, fetcher, public_source):
    registry.add(public_source.index_url, service_index(flat=None))

    result = await fetcher.get_readme("Newtonsoft.Json", "13.0.3", public_source)

    assert result.error.code == "ApiError"
    assert "PackageBaseAddress" in result.error.message
