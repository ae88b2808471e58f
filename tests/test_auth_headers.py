"""Tests for request headers and origin scoping of credentials."""

import base64

import pytest

from nuget_client.auth import USER_AGENT, build_request_headers, filter_headers_for_url
from nuget_client.models import PackageSource, PackageSourceAuth
from nuget_client.utils.url import is_same_origin, strip_trailing_slash, url_origin


def _source(auth=None, index_url="https://feed.corp.example/v3/index.json"):
    return PackageSource(id="corp", name="Corp", index_url=index_url, auth=auth)


def test_anonymous_source_gets_accept_and_user_agent_only():
    headers = build_request_headers(_source())
    assert headers == {"Accept": "application/json", "User-Agent": USER_AGENT}


def test_auth_type_none_adds_no_credentials():
    headers = build_request_headers(_source(PackageSourceAuth(type="none", secret="ignored")))
    assert "Authorization" not in headers


def test_basic_auth_encodes_username_and_secret():
    headers = build_request_headers(_source(PackageSourceAuth(type="basic", username="ci", secret="s3cret")))
    expected = base64.b64encode(b"ci:s3cret").decode("ascii")
    assert headers["Authorization"] == f"Basic {expected}"


def test_basic_auth_requires_both_parts():
    headers = build_request_headers(_source(PackageSourceAuth(type="basic", secret="s3cret")))
    assert "Authorization" not in headers


def test_bearer_auth():
    headers = build_request_headers(_source(PackageSourceAuth(type="bearer", secret="tok")))
    assert headers["Authorization"] == "Bearer tok"


def test_api_key_uses_custom_header():
    auth = PackageSourceAuth(type="api-key", secret="key123", api_key_header="X-NuGet-ApiKey")
    headers = build_request_headers(_source(auth))
    assert headers["X-NuGet-ApiKey"] == "key123"
    assert "Authorization" not in headers


def test_api_key_without_header_name_adds_nothing():
    headers = build_request_headers(_source(PackageSourceAuth(type="api-key", secret="key123")))
    assert set(headers) == {"Accept", "User-Agent"}


def test_secret_not_in_repr():
    auth = PackageSourceAuth(type="bearer", secret="tok-very-secret")
    assert "tok-very-secret" not in repr(auth)
    assert "tok-very-secret" not in repr(_source(auth))


@pytest.mark.parametrize(
    "target",
    [
        "https://feed.corp.example/v3/registration/foo/index.json",
        "https://FEED.corp.example:443/other/path",
    ],
)
def test_same_origin_keeps_credentials(target):
    source = _source(PackageSourceAuth(type="bearer", secret="tok"))
    assert filter_headers_for_url(source, target)["Authorization"] == "Bearer tok"


@pytest.mark.parametrize(
    "target",
    [
        "https://cdn.example.net/registration/foo/index.json",
        "http://feed.corp.example/v3/index.json",
        "https://feed.corp.example:8443/v3/index.json",
        "not a url",
        "",
    ],
)
def test_foreign_or_unparseable_origin_strips_credentials(target):
    auth = PackageSourceAuth(type="api-key", secret="key123", api_key_header="X-NuGet-ApiKey")
    headers = filter_headers_for_url(_source(auth), target)
    assert "X-NuGet-ApiKey" not in headers
    assert "Authorization" not in headers
    assert headers["Accept"] == "application/json"
    assert headers["User-Agent"] == USER_AGENT


def test_unparseable_index_url_strips_credentials():
    source = _source(PackageSourceAuth(type="bearer", secret="tok"), index_url="feed-without-scheme")
    assert "Authorization" not in filter_headers_for_url(source, "https://feed.corp.example/x")


def test_url_origin_applies_default_ports():
    assert url_origin("https://a.example/x") == ("https", "a.example", 443)
    assert url_origin("http://a.example/x") == ("http", "a.example", 80)
    assert url_origin("/relative/path") is None
    assert is_same_origin("https://a.example", "https://a.example:443/y")
    assert not is_same_origin("https://a.example", "https://b.example")


def test_strip_trailing_slash():
    assert strip_trailing_slash("https://a.example/flat//") == "https://a.example/flat"
    assert strip_trailing_slash("https://a.example/flat") == "https://a.example/flat"
