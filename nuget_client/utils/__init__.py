"""Shared helpers for URL handling."""

from .url import is_same_origin, strip_trailing_slash, url_origin

__all__ = [
    "is_same_origin",
    "strip_trailing_slash",
    "url_origin",
]
