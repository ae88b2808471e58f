"""URL helpers for endpoint resolution and credential scoping."""

from __future__ import annotations

import re
from typing import Optional, Tuple
from urllib.parse import urlsplit

DEFAULT_PORTS = {"http": 80, "https": 443}

_TRAILING_SLASHES = re.compile(r"/+$")


def url_origin(url: str) -> Optional[Tuple[str, str, int]]:
    """Return ``(scheme, host, port)`` or ``None`` when ``url`` is not absolute."""
    if not isinstance(url, str) or not url.strip():
        return None
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if not scheme or not host:
        return None
    if port is None:
        port = DEFAULT_PORTS.get(scheme)
        if port is None:
            return None
    return scheme, host, port


def is_same_origin(first: str, second: str) -> bool:
    """True only when both URLs parse and share scheme, host and port."""
    first_origin = url_origin(first)
    second_origin = url_origin(second)
    if first_origin is None or second_origin is None:
        return False
    return first_origin == second_origin


def strip_trailing_slash(url: str) -> str:
    return _TRAILING_SLASHES.sub("", url or "")
