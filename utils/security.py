"""
Centralized redaction helpers for credentials that may surface in logs.

Registry clients carry Basic/Bearer credentials and custom API-key headers;
anything that is logged or copied into an error ``details`` field goes
through these helpers first.
"""

from typing import Any, Dict, Iterable, Mapping, Optional
import re

SENSITIVE_HEADER_NAMES = {"authorization", "proxy-authorization", "x-nuget-apikey"}

SENSITIVE_KEYS = {"password", "secret", "token", "api_key", "apikey", "authorization"}


def redact_sensitive(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Redact sensitive fields from dictionaries (source descriptors, diagnostics).

    Args:
        data: Dictionary potentially containing credentials

    Returns:
        New dictionary with sensitive values replaced by '[REDACTED]'
    """

    def _redact(obj):
        if isinstance(obj, dict):
            return {
                k: "[REDACTED]" if str(k).lower() in SENSITIVE_KEYS else _redact(v)
                for k, v in obj.items()
            }
        if isinstance(obj, list):
            return [_redact(item) for item in obj]
        return obj

    return _redact(data)


def redact_headers(
    headers: Mapping[str, str], extra_names: Optional[Iterable[str]] = None
) -> Dict[str, str]:
    """Return a copy of ``headers`` that is safe to log.

    ``extra_names`` lists additional header names to hide, typically a
    source's custom API-key header.
    """
    hidden = set(SENSITIVE_HEADER_NAMES)
    if extra_names:
        hidden.update(name.lower() for name in extra_names if name)
    return {
        name: "[REDACTED]" if name.lower() in hidden else value
        for name, value in headers.items()
    }


def redact_secrets_from_text(text: str) -> str:
    """
    Redact secrets from plain text using regex patterns.

    Useful for exception messages and URLs that might echo query-string keys
    or authorization headers.

    Args:
        text: String potentially containing secrets

    Returns:
        String with secrets replaced with '[REDACTED]'
    """
    if not text:
        return text

    redactions = [
        (r"(api_key=)[^&\s]+", r"\1[REDACTED]"),
        (r"(apikey=)[^&\s]+", r"\1[REDACTED]"),
        (r"(token=)[^&\s]+", r"\1[REDACTED]"),
        (r"(Authorization:\s*(?:Bearer|Basic))\s+[^\s]+", r"\1 [REDACTED]"),
        (r"(://)[^/@\s:]+:[^/@\s]+@", r"\1[REDACTED]@"),
    ]

    out = text
    for pattern, repl in redactions:
        out = re.sub(pattern, repl, out, flags=re.IGNORECASE)
    return out
