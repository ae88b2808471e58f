"""Tests for service index discovery and the resolved endpoint caches."""

import httpx
import pytest

from fakes import service_index
from nuget_client.models import PackageSource, PackageSourceAuth, ServiceIndex
from nuget_client.service_index import ServiceIndexResolver, candidate_index_urls, find_resource

INDEX_URL = "https://api.example.org/v3/index.json"


@pytest.fixture
def resolver(executor):
    return ServiceIndexResolver(executor, timeout=5.0)


@pytest.mark.asyncio
async def test_three_capabilities_cost_one_index_fetch(registry, resolver, public_source):
    registry.add(INDEX_URL, service_index())

    search = await resolver.resolve_search_url(public_source)
    registration = await resolver.resolve_registration_url(public_source)
    flat = await resolver.resolve_flat_container_url(public_source)
    # Cached path
    await resolver.resolve_search_url(public_source)
    await resolver.resolve_flat_container_url(public_source)

    assert search.result == "https://api.example.org/query"
    assert registration.result == "https://api.example.org/registration"
    assert flat.result == "https://api.example.org/flat"
    assert registry.calls(INDEX_URL) == 1


@pytest.mark.asyncio
async def test_registration_precedence(registry, resolver, public_source):
    registry.add(
        INDEX_URL,
        {
            "version": "3.0.0",
            "resources": [
                {"@id": "https://api.example.org/reg-legacy/", "@type": "RegistrationsBaseUrl"},
                {"@id": "https://api.example.org/reg-340/", "@type": "RegistrationsBaseUrl/3.4.0"},
                {"@id": "https://api.example.org/reg-360/", "@type": "RegistrationsBaseUrl/3.6.0"},
                {"@id": "https://api.example.org/reg-versioned/", "@type": "RegistrationsBaseUrl/Versioned"},
            ],
        },
    )

    result = await resolver.resolve_registration_url(public_source)

    assert result.result == "https://api.example.org/reg-360"


@pytest.mark.asyncio
async def test_registration_falls_back_to_any_registrations_base(registry, resolver, public_source):
    registry.add(
        INDEX_URL,
        {"resources": [{"@id": "https://api.example.org/reg-gz/", "@type": "RegistrationsBaseUrl/3.0.0-rc"}]},
    )

    result = await resolver.resolve_registration_url(public_source)

    assert result.result == "https://api.example.org/reg-gz"


@pytest.mark.asyncio
async def test_missing_capability_names_it(registry, resolver, public_source):
    registry.add(INDEX_URL, service_index(search=None))

    result = await resolver.resolve_search_url(public_source)

    assert result.error.code == "ApiError"
    assert "SearchQueryService" in result.error.message


@pytest.mark.asyncio
async def test_service_index_auth_failure(registry, resolver, private_source):
    registry.add(private_source.index_url, httpx.Response(401))

    result = await resolver.resolve_search_url(private_source)

    assert result.error.code == "AuthRequired"
    assert "PrivateFeed" in result.error.hint


@pytest.mark.asyncio
async def test_failed_lookup_is_not_cached(registry, resolver, public_source):
    registry.add(INDEX_URL, httpx.Response(503))
    first = await resolver.resolve_search_url(public_source)
    assert first.error.code == "ApiError"

    registry.add(INDEX_URL, service_index())
    second = await resolver.resolve_search_url(public_source)
    assert second.success
    assert registry.calls(INDEX_URL) == 2


@pytest.mark.asyncio
async def test_malformed_service_index_is_parse_error(registry, resolver, public_source):
    registry.add(INDEX_URL, {"version": "3.0.0", "resources": "nope"})

    result = await resolver.resolve_search_url(public_source)

    assert result.error.code == "ParseError"


@pytest.mark.asyncio
async def test_index_fetch_sends_credentials_to_own_origin(registry, resolver, private_source):
    registry.add(private_source.index_url, service_index(search="https://feed.corp.example/query"))

    await resolver.resolve_search_url(private_source)

    request = registry.last_request(private_source.index_url)
    assert request.headers["Authorization"].startswith("Basic ")


def test_find_resource_matches_type_prefix():
    index = ServiceIndex.model_validate(
        {
            "resources": [
                {"@id": "https://a.example/autocomplete", "@type": "SearchAutocompleteService"},
                {"@id": "https://a.example/query", "@type": "SearchQueryService/3.0.0-rc"},
                {"@type": "SearchQueryService"},
                "garbage",
            ]
        }
    )
    assert len(index.resources) == 2
    assert find_resource(index, "SearchQueryService") == "https://a.example/query"
    assert find_resource(index, "PackagePublish") is None


def test_artifactory_candidates_for_index_json():
    source = PackageSource(
        id="jfrog",
        provider="artifactory",
        index_url="https://corp.jfrog.io/artifactory/api/nuget/nuget-remote/index.json",
    )
    assert candidate_index_urls(source) == [
        "https://corp.jfrog.io/artifactory/api/nuget/nuget-remote/index.json",
        "https://corp.jfrog.io/artifactory/api/nuget/nuget-remote/v3/index.json",
        "https://corp.jfrog.io/artifactory/api/nuget/nuget-remote/v3",
    ]


def test_artifactory_candidates_without_v3():
    source = PackageSource(
        id="jfrog",
        provider="artifactory",
        index_url="https://corp.jfrog.io/artifactory/api/nuget/nuget-remote/",
    )
    assert candidate_index_urls(source) == [
        "https://corp.jfrog.io/artifactory/api/nuget/nuget-remote/",
        "https://corp.jfrog.io/artifactory/api/nuget/nuget-remote/v3/index.json",
    ]


def test_other_providers_use_configured_url_only(public_source):
    assert candidate_index_urls(public_source) == [public_source.index_url]


@pytest.mark.asyncio
async def test_artifactory_falls_back_to_v3_path(registry, resolver):
    source = PackageSource(
        id="jfrog",
        provider="artifactory",
        index_url="https://corp.jfrog.io/api/nuget/remote/index.json",
    )
    registry.add("https://corp.jfrog.io/api/nuget/remote/v3/index.json", service_index())

    result = await resolver.resolve_search_url(source)

    assert result.success
    assert registry.calls("https://corp.jfrog.io/api/nuget/remote/index.json") == 1
    assert registry.calls("https://corp.jfrog.io/api/nuget/remote/v3/index.json") == 1


@pytest.mark.asyncio
async def test_artifactory_stops_at_auth_failure(registry, resolver):
    source = PackageSource(
        id="jfrog",
        provider="artifactory",
        index_url="https://corp.jfrog.io/api/nuget/remote/index.json",
        auth=PackageSourceAuth(type="bearer", secret="tok"),
    )
    registry.add(source.index_url, httpx.Response(401))
    registry.add("https://corp.jfrog.io/api/nuget/remote/v3/index.json", service_index())

    result = await resolver.resolve_search_url(source)

    assert result.error.code == "AuthRequired"
    assert registry.calls("https://corp.jfrog.io/api/nuget/remote/v3/index.json") == 0
