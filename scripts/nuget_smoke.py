"""Smoke test against live registries.

Runs search, metadata index, version detail and readme lookups against the
sources configured in the environment (nuget.org by default).

Usage:
    python scripts/nuget_smoke.py [package-id]
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

from nuget_client import NuGetApiClient, SearchOptions, load_options_from_env  # noqa: E402
from observability.logging import setup_logging  # noqa: E402


def _report(label: str, result) -> bool:
    if result.success:
        print(f"  OK   {label}")
        return True
    error = result.error
    print(f"  FAIL {label}: [{error.code}] {error.message}")
    if error.hint:
        print(f"       hint: {error.hint}")
    return False


async def main(package_id: str) -> int:
    setup_logging()
    options = load_options_from_env()
    print(f"Sources: {', '.join(source.id for source in options.enabled_sources)}")

    failures = 0
    async with NuGetApiClient(options) as client:
        search = await client.search_packages(SearchOptions(query=package_id, take=5))
        if _report(f"search '{package_id}'", search):
            for package in search.result:
                print(f"       {package.id} {package.version} ({package.download_count:,} downloads)")
        else:
            failures += 1

        index = await client.get_package_index(package_id)
        if not _report(f"package index {package_id}", index):
            return failures + 1
        if not index.result.versions:
            print("       no versions published")
            return failures + 1
        print(f"       {index.result.total_versions} versions, latest {index.result.versions[0].version}")

        latest = index.result.versions[0].version
        details = await client.get_package_version(package_id, latest)
        if _report(f"version details {package_id} {latest}", details):
            print(f"       published {details.result.published}, {len(details.result.dependency_groups)} dependency groups")
        else:
            failures += 1

        readme = await client.get_package_readme(package_id, latest)
        if _report(f"readme {package_id} {latest}", readme):
            print(f"       {len(readme.result)} characters")
        elif readme.error.code != "NotFound":
            failures += 1

    print("Done" if failures == 0 else f"{failures} check(s) failed")
    return failures


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else "Newtonsoft.Json"
    sys.exit(1 if asyncio.run(main(target)) else 0)
