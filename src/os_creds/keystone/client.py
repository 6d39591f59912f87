"""Keystone v3 identity client.

Issues the token requests os-creds needs:

    unscoped            POST /v3/auth/tokens?nocatalog
    scoped by id        POST /v3/auth/tokens
    scoped by name      POST /v3/auth/tokens?nocatalog
    app credential      POST /v3/auth/tokens

The scoped-by-id request does not suppress the catalog while the unscoped
and by-name requests do. Callers rely on this being left as it is.

Every call is a single attempt: failures surface immediately as
TransportError, ProtocolError or AuthenticationFailure.
"""

from __future__ import annotations

__all__ = [
    "IdentityClient",
    "build_url",
    "normalize_auth_url",
]

import logging
from types import TracebackType
from typing import Literal

import httpx

from os_creds.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    SUBJECT_TOKEN_HEADER,
    TOKENS_PATH,
    TOKENS_PATH_NO_CATALOG,
)
from os_creds.credentials.record import Credentials
from os_creds.exceptions import AuthenticationFailure, ProtocolError, TransportError
from os_creds.keystone.schemas import (
    ApplicationCredentialIdentity,
    ApplicationCredentialMethod,
    AuthBody,
    DomainSpec,
    KeystoneToken,
    PasswordIdentity,
    PasswordMethod,
    PasswordUser,
    ProjectIdRef,
    ProjectIdScope,
    ProjectNameRef,
    ProjectNameScope,
    TokenRequest,
    TokenResponse,
    TotpMethod,
    TotpUser,
)
from os_creds.telemetry.system_logger import get_system_logger

BodyMode = Literal["required", "optional"]


def normalize_auth_url(auth_url: str) -> str:
    """Strip one trailing "/" and then a trailing "/v3" from an auth URL.

    Example:
        >>> normalize_auth_url("https://keystone:5000/v3/")
        'https://keystone:5000'
    """
    return auth_url.removesuffix("/").removesuffix("/v3")


def build_url(auth_url: str, suffix: str) -> str:
    """Join a stored auth URL and a "/v3/..." request suffix."""
    return normalize_auth_url(auth_url) + suffix


def domain_spec(record: Credentials) -> DomainSpec:
    """Domain reference for the user: by id when set, otherwise by name."""
    if record.user_domain_id:
        return DomainSpec(id=record.user_domain_id)
    return DomainSpec(name=record.user_domain_name)


def password_identity(record: Credentials) -> PasswordIdentity:
    """Build the password identity, adding the totp method when a code is present."""
    domain = domain_spec(record)
    identity = PasswordIdentity(
        methods=["password"],
        password=PasswordMethod(
            user=PasswordUser(name=record.username, domain=domain, password=record.password),
        ),
    )
    if record.totp_code:
        identity.methods.append("totp")
        identity.totp = TotpMethod(
            user=TotpUser(name=record.username, domain=domain, passcode=record.totp_code),
        )
    return identity


class IdentityClient:
    """Synchronous client for the Keystone token API.

    Usage:
        with IdentityClient(timeout=30) as client:
            token = client.request_unscoped_token(record)

    Args:
        http_client: HTTP client to use (default: a new httpx.Client owned by this instance).
        timeout: Request timeout in seconds when creating the client.
        logger: Diagnostics logger (default: the system logger).
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)
        self._logger = logger or get_system_logger()

    @property
    def http_client(self) -> httpx.Client:
        """The underlying HTTP client, shared with ProjectLister."""
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> IdentityClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Token requests
    # -------------------------------------------------------------------------

    def request_unscoped_token(self, record: Credentials) -> KeystoneToken:
        """Request an unscoped token with password (and TOTP) auth.

        Raises:
            TransportError: On connection failure.
            ProtocolError: If the 201 response has no X-Subject-Token.
            AuthenticationFailure: On any non-201 response.
        """
        request = TokenRequest(auth=AuthBody(identity=password_identity(record)))
        return self._post_token(
            build_url(record.auth_url, TOKENS_PATH_NO_CATALOG),
            request,
            kind="unscoped",
            body_mode="optional",
        )

    def request_scoped_token(self, record: Credentials, project_id: str) -> KeystoneToken:
        """Request a token scoped to a project id.

        The catalog is not suppressed on this request.

        Raises:
            TransportError: On connection failure.
            ProtocolError: If the 201 response has no X-Subject-Token.
            AuthenticationFailure: On any non-201 response.
        """
        request = TokenRequest(
            auth=AuthBody(
                identity=password_identity(record),
                scope=ProjectIdScope(project=ProjectIdRef(id=project_id)),
            )
        )
        return self._post_token(
            build_url(record.auth_url, TOKENS_PATH),
            request,
            kind="scoped",
            body_mode="optional",
        )

    def request_scoped_token_by_name(self, record: Credentials, project_name: str) -> KeystoneToken:
        """Request a token scoped to a project name in the user's domain.

        Keystone resolves the name; the returned token's project is the
        canonical id and name.

        Raises:
            TransportError: On connection failure.
            ProtocolError: If the header is missing or the body is not valid JSON.
            AuthenticationFailure: On any non-201 response.
        """
        request = TokenRequest(
            auth=AuthBody(
                identity=password_identity(record),
                scope=ProjectNameScope(project=ProjectNameRef(name=project_name, domain=domain_spec(record))),
            )
        )
        return self._post_token(
            build_url(record.auth_url, TOKENS_PATH_NO_CATALOG),
            request,
            kind="scoped_by_name",
            body_mode="required",
        )

    def request_application_credential_token(self, record: Credentials) -> KeystoneToken:
        """Request a token with an application credential.

        The token is scoped to whatever project the credential is bound to,
        which is only known from the response body.

        Raises:
            TransportError: On connection failure.
            ProtocolError: If the header is missing or the body is not valid JSON.
            AuthenticationFailure: On any non-201 response.
        """
        request = TokenRequest(
            auth=AuthBody(
                identity=ApplicationCredentialIdentity(
                    application_credential=ApplicationCredentialMethod(
                        id=record.application_credential_id,
                        secret=record.application_credential_secret,
                    ),
                ),
            )
        )
        return self._post_token(
            build_url(record.auth_url, TOKENS_PATH),
            request,
            kind="application_credential",
            body_mode="required",
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _post_token(
        self,
        url: str,
        request: TokenRequest,
        *,
        kind: str,
        body_mode: BodyMode,
    ) -> KeystoneToken:
        """POST a token request and turn the response into a KeystoneToken.

        Args:
            url: Full request URL.
            request: Request body.
            kind: Request variant, for diagnostics.
            body_mode: "required" raises ProtocolError on a bad body,
                "optional" parses it best-effort.
        """
        self._logger.debug(
            {
                "event": "token_request",
                "kind": kind,
                "url": url,
                "methods": list(request.auth.identity.methods),
            }
        )

        try:
            response = self._client.post(url, json=request.to_payload())
        except httpx.HTTPError as e:
            self._logger.debug({"event": "token_request_failed", "kind": kind, "error": str(e)})
            raise TransportError(f"Request to {url} failed: {e}") from e

        self._logger.debug(
            {"event": "token_response", "kind": kind, "status_code": response.status_code}
        )

        if response.status_code != httpx.codes.CREATED:
            self._logger.debug(
                {
                    "event": "token_rejected",
                    "kind": kind,
                    "status_code": response.status_code,
                    "body": response.text,
                }
            )
            raise AuthenticationFailure(
                f"{kind.replace('_', ' ')} authentication failed",
                status_code=response.status_code,
                body=response.text,
            )

        subject_token = response.headers.get(SUBJECT_TOKEN_HEADER, "")
        if not subject_token:
            raise ProtocolError(f"No {SUBJECT_TOKEN_HEADER} header in {kind} token response")

        body = self._parse_body(response, kind=kind, body_mode=body_mode)

        self._logger.debug(
            {
                "event": "token_issued",
                "kind": kind,
                "token_length": len(subject_token),
                "expires_at": body.token.expires_at if body else None,
            }
        )
        return KeystoneToken(subject_token=subject_token, body=body)

    def _parse_body(self, response: httpx.Response, *, kind: str, body_mode: BodyMode) -> TokenResponse | None:
        try:
            return TokenResponse.model_validate(response.json())
        except ValueError as e:
            if body_mode == "required":
                raise ProtocolError(f"Failed to parse {kind} token response: {e}") from e
            self._logger.debug({"event": "token_body_unparsed", "kind": kind, "error": str(e)})
            return None
