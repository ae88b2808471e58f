"""Tests for environment-driven client options."""

import json

import pytest

from nuget_client.config import ApiOptions, load_options_from_env
from nuget_client.errors import ConfigurationError

ENV_VARS = [
    "NUGET_SOURCES",
    "NUGET_SERVICE_INDEX_TIMEOUT_SECONDS",
    "NUGET_SEARCH_TIMEOUT_SECONDS",
    "NUGET_METADATA_TIMEOUT_SECONDS",
    "NUGET_README_TIMEOUT_SECONDS",
    "NUGET_SEMVER_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return tmp_path / "missing.env"


def test_defaults(clean_env):
    options = load_options_from_env(clean_env)

    assert [source.id for source in options.sources] == ["nuget.org"]
    assert options.service_index_timeout == 5.0
    assert options.search_timeout == 30.0
    assert options.metadata_timeout == 30.0
    assert options.readme_timeout == 60.0
    assert options.sem_ver_level == "2.0.0"
    assert options.max_readme_bytes == 500 * 1024


def test_sources_and_timeouts_from_env(clean_env, monkeypatch):
    monkeypatch.setenv(
        "NUGET_SOURCES",
        json.dumps(
            [
                {"id": "nuget.org", "index_url": "https://api.nuget.org/v3/index.json", "provider": "nuget.org"},
                {
                    "id": "corp",
                    "name": "Corp Feed",
                    "index_url": "https://feed.corp.example/v3/index.json",
                    "enabled": False,
                    "auth": {"type": "bearer", "secret": "tok"},
                },
            ]
        ),
    )
    monkeypatch.setenv("NUGET_SEARCH_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("NUGET_SEMVER_LEVEL", "1.0.0")

    options = load_options_from_env(clean_env)

    assert [source.id for source in options.sources] == ["nuget.org", "corp"]
    assert [source.id for source in options.enabled_sources] == ["nuget.org"]
    assert options.sources[1].auth.secret_value() == "tok"
    assert options.search_timeout == 12.5
    assert options.sem_ver_level == "1.0.0"


@pytest.mark.parametrize("raw", ["abc", "-3", "0"])
def test_malformed_timeout_falls_back(clean_env, monkeypatch, raw):
    monkeypatch.setenv("NUGET_README_TIMEOUT_SECONDS", raw)

    options = load_options_from_env(clean_env)

    assert options.readme_timeout == 60.0


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        '{"id": "x"}',
        '[{"id": "x"}]',
        '[{"id": "x", "index_url": "https://a/v3/index.json", "provider": "bogus"}]',
        '[{"id": "x", "index_url": "https://a/v3/index.json"}, {"id": "x", "index_url": "https://b/v3/index.json"}]',
    ],
)
def test_malformed_sources_raise(clean_env, monkeypatch, raw):
    monkeypatch.setenv("NUGET_SOURCES", raw)

    with pytest.raises(ConfigurationError):
        load_options_from_env(clean_env)


def test_options_are_immutable():
    options = ApiOptions()
    with pytest.raises(Exception):
        options.search_timeout = 1.0
