"""Keystone v3 wire schemas.

Request bodies are one explicit model per auth-method variant instead of an
ad-hoc dict, so every field's presence is visible in the type:

    password            PasswordIdentity(methods=["password"])
    password + totp     PasswordIdentity(methods=["password", "totp"], totp=...)
    app credential      ApplicationCredentialIdentity

Serialize with TokenRequest.to_payload(), which drops unset optional fields.

Response models are lenient: every field is optional and unknown fields
are ignored, since what Keystone returns depends on the request
(?nocatalog, scope) and on server policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field

# =============================================================================
# Shared
# =============================================================================


class DomainSpec(BaseModel):
    """Domain reference by id or by name (exactly one is set)."""

    id: str | None = None
    name: str | None = None


class Project(BaseModel):
    """A project the caller can scope to."""

    id: str
    name: str = ""
    description: str = ""


# =============================================================================
# Requests
# =============================================================================


class PasswordUser(BaseModel):
    name: str
    domain: DomainSpec
    password: str


class PasswordMethod(BaseModel):
    user: PasswordUser


class TotpUser(BaseModel):
    name: str
    domain: DomainSpec
    passcode: str


class TotpMethod(BaseModel):
    user: TotpUser


class PasswordIdentity(BaseModel):
    """Password identity, optionally combined with a TOTP passcode."""

    methods: list[Literal["password", "totp"]]
    password: PasswordMethod
    totp: TotpMethod | None = None


class ApplicationCredentialMethod(BaseModel):
    id: str
    secret: str


class ApplicationCredentialIdentity(BaseModel):
    """Application credential identity; carries no user or domain."""

    methods: list[Literal["application_credential"]] = Field(default_factory=lambda: ["application_credential"])
    application_credential: ApplicationCredentialMethod


class ProjectIdRef(BaseModel):
    id: str


class ProjectIdScope(BaseModel):
    project: ProjectIdRef


class ProjectNameRef(BaseModel):
    name: str
    domain: DomainSpec


class ProjectNameScope(BaseModel):
    project: ProjectNameRef


class AuthBody(BaseModel):
    identity: PasswordIdentity | ApplicationCredentialIdentity
    scope: ProjectIdScope | ProjectNameScope | None = None


class TokenRequest(BaseModel):
    """POST /v3/auth/tokens request body."""

    auth: AuthBody

    def to_payload(self) -> dict[str, Any]:
        """JSON payload with unset optional fields removed."""
        return self.model_dump(exclude_none=True)


# =============================================================================
# Responses
# =============================================================================


class NamedRef(BaseModel):
    id: str = ""
    name: str = ""


class TokenUser(NamedRef):
    domain: NamedRef = Field(default_factory=NamedRef)


class CatalogEndpoint(BaseModel):
    id: str = ""
    interface: str = ""
    region: str | None = None
    url: str = ""


class CatalogService(BaseModel):
    type: str = ""
    id: str = ""
    name: str = ""
    endpoints: list[CatalogEndpoint] = Field(default_factory=list)


class TokenBody(BaseModel):
    expires_at: str | None = None
    project: NamedRef | None = None
    user: TokenUser | None = None
    roles: list[NamedRef] = Field(default_factory=list)
    catalog: list[CatalogService] = Field(default_factory=list)


class TokenResponse(BaseModel):
    """Body of a successful POST /v3/auth/tokens."""

    token: TokenBody = Field(default_factory=TokenBody)


class ProjectListEntry(BaseModel):
    id: str
    name: str = ""
    description: str | None = None
    enabled: bool = False
    domain_id: str | None = None


class ProjectListResponse(BaseModel):
    """Body of GET /v3/auth/projects."""

    projects: list[ProjectListEntry] = Field(default_factory=list)


# =============================================================================
# Result
# =============================================================================


@dataclass(frozen=True)
class KeystoneToken:
    """An issued token plus the response body when one was parsed.

    Attributes:
        subject_token: Value of the X-Subject-Token header.
        body: Parsed response body, or None when absent or not parsed.
    """

    subject_token: str
    body: TokenResponse | None = None

    @property
    def expires_at(self) -> str | None:
        """Expiry timestamp as sent by Keystone, if known."""
        if self.body is None:
            return None
        return self.body.token.expires_at

    @property
    def project(self) -> Project | None:
        """Project the token is scoped to, if the body names one."""
        if self.body is None or self.body.token.project is None:
            return None
        granted = self.body.token.project
        return Project(id=granted.id, name=granted.name)
