"""Per-source request headers and origin scoping of credentials.

Returned header dicts contain live credentials; callers must log them only
through ``utils.security.redact_headers``.
"""

from __future__ import annotations

import base64
from typing import Dict, Set

from nuget_client.models import PackageSource
from nuget_client.utils.url import is_same_origin

USER_AGENT = "nuget-client-py/1.0.0"


def build_request_headers(source: PackageSource, user_agent: str = USER_AGENT) -> Dict[str, str]:
    headers: Dict[str, str] = {
        "Accept": "application/json",
        "User-Agent": user_agent,
    }

    auth = source.auth
    if auth is None or auth.type == "none":
        return headers

    secret = auth.secret_value()

    if auth.type == "basic":
        if auth.username and secret:
            encoded = base64.b64encode(f"{auth.username}:{secret}".encode("utf-8")).decode("ascii")
            headers["Authorization"] = f"Basic {encoded}"
    elif auth.type == "bearer":
        if secret:
            headers["Authorization"] = f"Bearer {secret}"
    elif auth.type == "api-key":
        if auth.api_key_header and secret:
            headers[auth.api_key_header] = secret

    return headers


def credential_header_names(source: PackageSource) -> Set[str]:
    names = {"authorization"}
    if source.auth is not None and source.auth.api_key_header:
        names.add(source.auth.api_key_header.lower())
    return names


def strip_credentials(source: PackageSource, headers: Dict[str, str]) -> Dict[str, str]:
    hidden = credential_header_names(source)
    return {name: value for name, value in headers.items() if name.lower() not in hidden}


def filter_headers_for_url(
    source: PackageSource, target_url: str, user_agent: str = USER_AGENT
) -> Dict[str, str]:
    """Headers for ``target_url``, without credentials unless it shares the index URL origin.

    Service indexes can point at hosts other than the feed itself (CDNs,
    search clusters, catalog storage). Credentials only travel to the origin
    the user configured; an unparseable URL on either side counts as foreign.
    """
    headers = build_request_headers(source, user_agent)
    if is_same_origin(source.index_url, target_url):
        return headers
    return strip_credentials(source, headers)
