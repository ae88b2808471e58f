import os
import sys

import pytest
import pytest_asyncio

# Add parent directory to path to allow importing the packages
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fakes import FakeRegistry
from nuget_client.http import RequestExecutor
from nuget_client.models import PackageSource, PackageSourceAuth


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest_asyncio.fixture
async def http_client(registry):
    client = registry.client()
    yield client
    await client.aclose()


@pytest.fixture
def executor(http_client):
    return RequestExecutor(http_client)


@pytest.fixture
def public_source():
    return PackageSource(
        id="nuget.org",
        name="nuget.org",
        provider="nuget.org",
        index_url="https://api.example.org/v3/index.json",
    )


@pytest.fixture
def private_source():
    return PackageSource(
        id="PrivateFeed",
        name="Private Feed",
        provider="custom",
        index_url="https://feed.corp.example/v3/index.json",
        auth=PackageSourceAuth(type="basic", username="ci", secret="s3cret"),
    )
