"""Async client for NuGet v3 package registries."""

from nuget_client.cancellation import CancellationToken
from nuget_client.client import ALL_SOURCES, NuGetApiClient, create_nuget_api_client
from nuget_client.config import ApiOptions, load_options_from_env
from nuget_client.errors import (
    ConfigurationError,
    ErrorCode,
    NuGetClientError,
    NuGetError,
    NuGetResult,
    NuGetResultError,
)
from nuget_client.models import (
    NUGET_ORG_SOURCE,
    PackageIndex,
    PackageSearchResult,
    PackageSource,
    PackageSourceAuth,
    PackageVersionDetails,
    PackageVersionSummary,
    SearchOptions,
)
from nuget_client.versioning import compare_versions, sort_versions_descending

__all__ = [
    "ALL_SOURCES",
    "ApiOptions",
    "CancellationToken",
    "ConfigurationError",
    "ErrorCode",
    "NUGET_ORG_SOURCE",
    "NuGetApiClient",
    "NuGetClientError",
    "NuGetError",
    "NuGetResult",
    "NuGetResultError",
    "PackageIndex",
    "PackageSearchResult",
    "PackageSource",
    "PackageSourceAuth",
    "PackageVersionDetails",
    "PackageVersionSummary",
    "SearchOptions",
    "compare_versions",
    "create_nuget_api_client",
    "load_options_from_env",
    "sort_versions_descending",
]
