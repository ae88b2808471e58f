"""Typed models for NuGet v3 sources, service indexes and package metadata."""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

ProviderKind = Literal["nuget.org", "artifactory", "azure-artifacts", "github", "myget", "custom"]
AuthType = Literal["none", "basic", "bearer", "api-key"]
DeprecationReason = Literal["Legacy", "CriticalBugs", "Other"]
VulnerabilitySeverity = Literal["Low", "Moderate", "High", "Critical"]

DEFAULT_ICON_URL = "https://www.nuget.org/Content/gallery/img/default-package-icon.svg"


class PackageSourceAuth(BaseModel):
    """Credentials for a package source. The secret is never rendered in reprs."""

    model_config = {"frozen": True}

    type: AuthType = "none"
    username: Optional[str] = None
    secret: Optional[SecretStr] = None
    api_key_header: Optional[str] = None

    def secret_value(self) -> Optional[str]:
        if self.secret is None:
            return None
        return self.secret.get_secret_value() or None


class PackageSource(BaseModel):
    """One configured registry."""

    model_config = {"frozen": True}

    id: str = Field(..., min_length=1)
    name: str = ""
    provider: ProviderKind = "custom"
    index_url: str
    enabled: bool = True
    auth: Optional[PackageSourceAuth] = None

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value: Optional[str]) -> str:
        return value or ""

    @property
    def display_name(self) -> str:
        return self.name or self.id


NUGET_ORG_SOURCE = PackageSource(
    id="nuget.org",
    name="nuget.org",
    provider="nuget.org",
    index_url="https://api.nuget.org/v3/index.json",
    enabled=True,
)


class SearchOptions(BaseModel):
    """Query parameters for the search endpoint. Omitting ``query`` browses all packages."""

    query: Optional[str] = None
    prerelease: Optional[bool] = None
    skip: Optional[int] = Field(None, ge=0)
    take: Optional[int] = Field(None, ge=0, le=1000)
    sem_ver_level: Optional[str] = None


class PackageSearchResult(BaseModel):
    id: str
    version: str
    description: str = ""
    authors: List[str] = Field(default_factory=list)
    download_count: int = 0
    icon_url: str = DEFAULT_ICON_URL
    verified: bool = False
    tags: List[str] = Field(default_factory=list)
    # Set only while merging multi-source results
    source_id: Optional[str] = None
    source_name: Optional[str] = None


class ServiceIndexResource(BaseModel):
    id: str = Field(..., alias="@id")
    type: str = Field(..., alias="@type")
    comment: Optional[str] = None


class ServiceIndex(BaseModel):
    version: str = ""
    resources: List[ServiceIndexResource] = Field(default_factory=list)

    @field_validator("resources", mode="before")
    @classmethod
    def _drop_malformed_resources(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            raise ValueError("resources must be a list")
        return [
            item for item in value
            if isinstance(item, dict)
            and isinstance(item.get("@id"), str)
            and isinstance(item.get("@type"), str)
        ]


class PackageVersionSummary(BaseModel):
    version: str
    downloads: Optional[int] = None
    registration_url: Optional[str] = None
    package_content_url: Optional[str] = None
    listed: bool = False


class PackageIndex(BaseModel):
    id: str
    versions: List[PackageVersionSummary] = Field(default_factory=list)
    total_versions: int = 0


class PackageDependency(BaseModel):
    id: str
    range: Optional[str] = None


class DependencyGroup(BaseModel):
    # Empty string means "any framework"
    target_framework: str = ""
    dependencies: List[PackageDependency] = Field(default_factory=list)


class AlternatePackage(BaseModel):
    id: str
    range: Optional[str] = None


class PackageDeprecation(BaseModel):
    reasons: List[DeprecationReason] = Field(default_factory=list)
    message: Optional[str] = None
    alternate_package: Optional[AlternatePackage] = None


class PackageVulnerability(BaseModel):
    advisory_url: Optional[str] = None
    severity: VulnerabilitySeverity = "Low"


class PackageVersionDetails(BaseModel):
    """Full metadata for one package version (registration leaf + catalog entry)."""

    id: str
    version: str
    description: Optional[str] = None
    summary: Optional[str] = None
    title: Optional[str] = None
    authors: Optional[str] = None
    owners: Optional[str] = None
    icon_url: Optional[str] = None
    license_expression: Optional[str] = None
    license_url: Optional[str] = None
    project_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    total_downloads: Optional[int] = None
    listed: bool = False
    published: Optional[str] = None
    dependency_groups: List[DependencyGroup] = Field(default_factory=list)
    deprecation: Optional[PackageDeprecation] = None
    vulnerabilities: Optional[List[PackageVulnerability]] = None
    readme_url: Optional[str] = None
    package_content_url: str
    registration_url: str


SourceStatus = Literal["ok", "error", "timeout", "cancelled", "auth_required", "rate_limited"]


class SourceStatusSnapshot(BaseModel):
    """Outcome of one source during a multi-source search."""

    source_id: str
    status: SourceStatus
    result_count: int = 0
    latency_ms: Optional[int] = None
    message: Optional[str] = None
