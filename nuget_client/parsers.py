"""Parsers from registry JSON payloads into typed models.

The registry schema is additive, so unknown fields are ignored. Search
parsing is lenient (bad entries are dropped); registration leaf parsing
raises ``ValueError`` when required properties are missing.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from nuget_client.models import (
    DEFAULT_ICON_URL,
    AlternatePackage,
    DependencyGroup,
    PackageDependency,
    PackageDeprecation,
    PackageSearchResult,
    PackageVersionDetails,
    PackageVersionSummary,
    PackageVulnerability,
)

logger = logging.getLogger(__name__)

DEPRECATION_REASONS = ("Legacy", "CriticalBugs", "Other")
SEVERITY_LEVELS = {0: "Low", 1: "Moderate", 2: "High", 3: "Critical"}

_WHITESPACE = re.compile(r"\s+")


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return None


def normalize_authors(authors: Any) -> List[str]:
    """Authors arrive either as ``"A, B"`` or as ``["A", "B"]``."""
    if isinstance(authors, str):
        return [author.strip() for author in authors.split(",") if author.strip()]
    if isinstance(authors, list):
        return [author for author in authors if isinstance(author, str)]
    return []


def normalize_tags(tags: Any) -> List[str]:
    if isinstance(tags, str):
        return [tag for tag in _WHITESPACE.split(tags) if tag]
    if isinstance(tags, list):
        return [tag for tag in tags if isinstance(tag, str)]
    return []


def parse_search_response(payload: Any) -> List[PackageSearchResult]:
    """Parse a search response (``{"totalHits": n, "data": [...]}``).

    Entries without a string ``id`` and ``version`` are dropped; a payload
    without a ``data`` array yields an empty list.
    """
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if not isinstance(data, list):
        return []

    results: List[PackageSearchResult] = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        package_id = entry.get("id")
        version = entry.get("version")
        if not isinstance(package_id, str) or not isinstance(version, str):
            continue

        icon_url = entry.get("iconUrl")
        results.append(
            PackageSearchResult(
                id=package_id,
                version=version,
                description=entry.get("description") if isinstance(entry.get("description"), str) else "",
                authors=normalize_authors(entry.get("authors")),
                download_count=_int_or_none(entry.get("totalDownloads")) or 0,
                icon_url=icon_url if isinstance(icon_url, str) and icon_url else DEFAULT_ICON_URL,
                verified=entry.get("verified") is True,
                tags=normalize_tags(entry.get("tags")),
            )
        )
    return results


def parse_version_summary(item: Any) -> PackageVersionSummary:
    """Parse one registration page item into a summary."""
    if not isinstance(item, dict):
        raise ValueError("Invalid page item: not an object")
    catalog_entry = item.get("catalogEntry")
    if not isinstance(catalog_entry, dict) or not isinstance(catalog_entry.get("version"), str):
        raise ValueError("Invalid page item: missing catalogEntry.version")

    return PackageVersionSummary(
        version=catalog_entry["version"],
        downloads=_int_or_none(catalog_entry.get("downloads")),
        registration_url=_str_or_none(item.get("@id")),
        package_content_url=_str_or_none(item.get("packageContent")),
        # Registries omit ``listed`` for listed versions
        listed=catalog_entry.get("listed", True) is True,
    )


def _parse_dependencies(dependencies: Any) -> List[PackageDependency]:
    if not isinstance(dependencies, list):
        return []
    parsed = []
    for dependency in dependencies:
        if isinstance(dependency, dict) and isinstance(dependency.get("id"), str):
            parsed.append(PackageDependency(id=dependency["id"], range=_str_or_none(dependency.get("range"))))
    return parsed


def _parse_dependency_groups(groups: Any) -> List[DependencyGroup]:
    if not isinstance(groups, list):
        return []
    return [
        DependencyGroup(
            target_framework=_str_or_none(group.get("targetFramework")) or "",
            dependencies=_parse_dependencies(group.get("dependencies")),
        )
        for group in groups
        if isinstance(group, dict)
    ]


def _parse_deprecation(deprecation: Any) -> Optional[PackageDeprecation]:
    if not isinstance(deprecation, dict):
        return None
    reasons = deprecation.get("reasons")
    alternate = deprecation.get("alternatePackage")
    alternate_package = None
    if isinstance(alternate, dict) and isinstance(alternate.get("id"), str):
        alternate_package = AlternatePackage(id=alternate["id"], range=_str_or_none(alternate.get("range")))
    return PackageDeprecation(
        reasons=[reason for reason in reasons if reason in DEPRECATION_REASONS] if isinstance(reasons, list) else [],
        message=_str_or_none(deprecation.get("message")),
        alternate_package=alternate_package,
    )


def severity_from_code(code: Any) -> str:
    """Map the registry's 0-3 severity code to a label; unknown codes are Low."""
    if isinstance(code, str) and code.strip().isdigit():
        code = int(code.strip())
    if isinstance(code, bool) or not isinstance(code, int):
        return "Low"
    return SEVERITY_LEVELS.get(code, "Low")


def _parse_vulnerabilities(vulnerabilities: Any) -> Optional[List[PackageVulnerability]]:
    if not isinstance(vulnerabilities, list):
        return None
    return [
        PackageVulnerability(
            advisory_url=_str_or_none(vulnerability.get("advisoryUrl")),
            severity=severity_from_code(vulnerability.get("severity")),
        )
        for vulnerability in vulnerabilities
        if isinstance(vulnerability, dict)
    ]


def parse_package_version_details(leaf: Any) -> PackageVersionDetails:
    """Parse a registration leaf whose ``catalogEntry`` is an embedded object."""
    if not isinstance(leaf, dict):
        raise ValueError("Invalid registration leaf response: not an object")
    if not isinstance(leaf.get("@id"), str) or not leaf["@id"]:
        raise ValueError("Invalid registration leaf: missing @id")
    catalog_entry: Dict[str, Any] = leaf.get("catalogEntry")  # type: ignore[assignment]
    if not isinstance(catalog_entry, dict):
        raise ValueError("Invalid registration leaf: missing catalogEntry")
    if not isinstance(leaf.get("packageContent"), str) or not leaf["packageContent"]:
        raise ValueError("Invalid registration leaf: missing packageContent")

    package_id = catalog_entry.get("id")
    version = catalog_entry.get("version")
    if not isinstance(package_id, str) or not isinstance(version, str) or not package_id or not version:
        raise ValueError("Invalid catalogEntry: missing id or version")

    return PackageVersionDetails(
        id=package_id,
        version=version,
        description=_str_or_none(catalog_entry.get("description")),
        summary=_str_or_none(catalog_entry.get("summary")),
        title=_str_or_none(catalog_entry.get("title")),
        authors=_str_or_none(catalog_entry.get("authors")),
        owners=_str_or_none(catalog_entry.get("owners")),
        icon_url=_str_or_none(catalog_entry.get("iconUrl")),
        license_expression=_str_or_none(catalog_entry.get("licenseExpression")),
        license_url=_str_or_none(catalog_entry.get("licenseUrl")),
        project_url=_str_or_none(catalog_entry.get("projectUrl")),
        tags=normalize_tags(catalog_entry.get("tags")),
        total_downloads=_int_or_none(catalog_entry.get("totalDownloads")),
        listed=catalog_entry.get("listed", True) is True,
        published=_str_or_none(catalog_entry.get("published")),
        dependency_groups=_parse_dependency_groups(catalog_entry.get("dependencyGroups")),
        deprecation=_parse_deprecation(catalog_entry.get("deprecation")),
        vulnerabilities=_parse_vulnerabilities(catalog_entry.get("vulnerabilities")),
        readme_url=_str_or_none(catalog_entry.get("readmeUrl")),
        package_content_url=leaf["packageContent"],
        registration_url=leaf["@id"],
    )
