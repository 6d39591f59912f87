"""Exception hierarchy for os-creds.

Transport, protocol and authentication errors abort the invocation.
CacheError never leaves the orchestrator: a broken cache is a cache miss.
"""

from __future__ import annotations

__all__ = [
    "AuthenticationFailure",
    "CacheError",
    "CredentialError",
    "OsCredsError",
    "ProtocolError",
    "SelectionError",
    "TransportError",
]


class OsCredsError(Exception):
    """Base exception for os-creds."""


class CredentialError(OsCredsError):
    """Credential record is missing, unreadable or malformed."""


class TransportError(OsCredsError):
    """Network-level failure (connection, DNS, TLS, timeout)."""


class ProtocolError(OsCredsError):
    """Identity service answered with an unexpected shape.

    Raised for malformed JSON, a missing X-Subject-Token header on a 201,
    or an unparseable expiry timestamp.
    """


class AuthenticationFailure(OsCredsError):
    """Identity service rejected the request.

    Attributes:
        status_code: HTTP status returned by the service.
        body: Raw response body, kept as diagnostic detail.
    """

    def __init__(self, message: str, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        detail = f"{message}: {status_code}"
        if body:
            detail = f"{detail} - {body}"
        super().__init__(detail)


class CacheError(OsCredsError):
    """Cache file could not be written or removed."""


class SelectionError(OsCredsError):
    """Nothing to choose from, or the user chose nothing."""
