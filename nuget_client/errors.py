"""Result envelope and closed error taxonomy for registry operations.

Every public client operation returns a ``NuGetResult``. Anticipated
failures (HTTP errors, bad payloads, transport problems, cancellation) are
reported through ``NuGetResult.error``; only configuration and programming
defects are raised.
"""

from __future__ import annotations

from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

ErrorCode = Literal[
    "ApiError",
    "AuthRequired",
    "RateLimit",
    "ParseError",
    "Network",
    "PackageNotFound",
    "VersionNotFound",
    "NotFound",
]

CANCELLED_BEFORE_START_MESSAGE = "Request was cancelled before it started"
CANCELLED_MESSAGE = "Request was cancelled"
TIMED_OUT_MESSAGE = "Request timed out"


class NuGetError(BaseModel):
    """Structured failure payload."""

    model_config = {"frozen": True}

    code: ErrorCode
    message: str
    status_code: Optional[int] = None
    retry_after: Optional[int] = None
    hint: Optional[str] = None
    details: Optional[str] = None


class NuGetResult(BaseModel, Generic[T]):
    """Tagged union of a success payload or a ``NuGetError``."""

    success: bool
    result: Optional[T] = None
    error: Optional[NuGetError] = None

    def unwrap(self) -> T:
        """Return the payload or raise ``NuGetResultError``."""
        if not self.success:
            raise NuGetResultError(self.error)
        return self.result  # type: ignore[return-value]


def ok(value: Any) -> NuGetResult:
    return NuGetResult(success=True, result=value)


def fail(code: ErrorCode, message: str, **fields: Any) -> NuGetResult:
    return NuGetResult(success=False, error=NuGetError(code=code, message=message, **fields))


def fail_with(error: NuGetError) -> NuGetResult:
    return NuGetResult(success=False, error=error)


class NuGetClientError(Exception):
    """
    Base exception for defects raised by this package.

    Attributes:
        message: Human-readable error message
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(NuGetClientError):
    """Raised when source or client configuration is malformed."""


class NuGetResultError(NuGetClientError):
    """Raised by ``NuGetResult.unwrap`` on a failed result."""

    def __init__(self, error: Optional[NuGetError]):
        super().__init__(error.message if error else "Operation failed")
        self.error = error
