# file: scamlookup/core/errors.py
"""
Error taxonomy for provider calls.

Every provider failure is caught per provider and turned into a failed
`LookupResult`; these exceptions never escape a dispatch. The `error_kind` of
each class is the coarse category reported to callers.
"""

from __future__ import annotations

from typing import Literal

ErrorKind = Literal["configuration", "network", "httpError", "timeout", "unknown"]


class ProviderCallError(Exception):
    """Base class for failures scoped to a single provider call."""

    error_kind: ErrorKind = "unknown"


class ConfigurationError(ProviderCallError):
    """Raised when a provider's templates resolve to an unusable request."""

    error_kind: ErrorKind = "configuration"


class NetworkError(ProviderCallError):
    """Connection, DNS or transport failure."""

    error_kind: ErrorKind = "network"


class HttpError(ProviderCallError):
    """The provider answered with a non-success status."""

    error_kind: ErrorKind = "httpError"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderTimeoutError(ProviderCallError):
    """The provider did not answer within its own `timeout_seconds`."""

    error_kind: ErrorKind = "timeout"


class UnknownError(ProviderCallError):
    """Anything unexpected that happened during one provider's call."""

    error_kind: ErrorKind = "unknown"


class InvalidLookupError(ValueError):
    """Raised when a caller's lookup request is malformed (bad type, empty value)."""
