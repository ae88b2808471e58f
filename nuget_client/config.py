"""Client options and environment loading.

Environment variables (a ``.env`` file is honoured, existing variables win):

- ``NUGET_SOURCES``: JSON list of source objects
  (``{"id", "name", "provider", "index_url", "enabled", "auth"}``)
- ``NUGET_SERVICE_INDEX_TIMEOUT_SECONDS`` (default 5)
- ``NUGET_SEARCH_TIMEOUT_SECONDS`` (default 30)
- ``NUGET_METADATA_TIMEOUT_SECONDS`` (default 30)
- ``NUGET_README_TIMEOUT_SECONDS`` (default 60)
- ``NUGET_SEMVER_LEVEL`` (default ``2.0.0``)
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from nuget_client.auth import USER_AGENT
from nuget_client.errors import ConfigurationError
from nuget_client.models import NUGET_ORG_SOURCE, PackageSource
from nuget_client.readme import MAX_README_BYTES
from utils.security import redact_sensitive

logger = logging.getLogger(__name__)


class ApiOptions(BaseModel):
    model_config = {"frozen": True}

    sources: List[PackageSource] = Field(default_factory=lambda: [NUGET_ORG_SOURCE])
    service_index_timeout: float = Field(5.0, gt=0)
    search_timeout: float = Field(30.0, gt=0)
    metadata_timeout: float = Field(30.0, gt=0)
    readme_timeout: float = Field(60.0, gt=0)
    sem_ver_level: str = "2.0.0"
    max_readme_bytes: int = Field(MAX_README_BYTES, gt=0)
    user_agent: str = USER_AGENT

    @property
    def enabled_sources(self) -> List[PackageSource]:
        return [source for source in self.sources if source.enabled]


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"[config] Ignoring malformed {name}={raw!r}; using {default}")
        return default
    if value <= 0:
        logger.warning(f"[config] Ignoring non-positive {name}={raw!r}; using {default}")
        return default
    return value


def parse_sources(raw: str) -> List[PackageSource]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"NUGET_SOURCES is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ConfigurationError("NUGET_SOURCES must be a JSON list of source objects")
    try:
        sources = [PackageSource.model_validate(item) for item in data]
    except ValidationError as exc:
        raise ConfigurationError(f"NUGET_SOURCES contains an invalid source: {exc}") from exc

    seen = set()
    for source in sources:
        if source.id in seen:
            raise ConfigurationError(f"Duplicate package source id '{source.id}'")
        seen.add(source.id)
    return sources


def load_options_from_env(dotenv_path: Optional[Union[str, Path]] = None) -> ApiOptions:
    """Build ``ApiOptions`` from the environment.

    Raises:
        ConfigurationError: ``NUGET_SOURCES`` is malformed.
    """
    load_dotenv(dotenv_path=dotenv_path, override=False)

    defaults = ApiOptions()
    raw_sources = os.getenv("NUGET_SOURCES")
    sources = parse_sources(raw_sources) if raw_sources and raw_sources.strip() else list(defaults.sources)

    options = ApiOptions(
        sources=sources,
        service_index_timeout=_env_float("NUGET_SERVICE_INDEX_TIMEOUT_SECONDS", defaults.service_index_timeout),
        search_timeout=_env_float("NUGET_SEARCH_TIMEOUT_SECONDS", defaults.search_timeout),
        metadata_timeout=_env_float("NUGET_METADATA_TIMEOUT_SECONDS", defaults.metadata_timeout),
        readme_timeout=_env_float("NUGET_README_TIMEOUT_SECONDS", defaults.readme_timeout),
        sem_ver_level=os.getenv("NUGET_SEMVER_LEVEL") or defaults.sem_ver_level,
    )
    logger.info(
        "[config] Loaded client options",
        extra={"sources": [redact_sensitive(source.model_dump(mode="json")) for source in options.sources]},
    )
    return options
