"""Authentication orchestrator.

Turns a credential record into a token and a scope. The branch is decided
once, up front, by select_scope(); the first matching rule wins:

    1. APPLICATION_CREDENTIAL  both app-credential fields set
    2. SYSTEM                  system_scope set
    3. PROJECT_ID              project_id set
    4. PROJECT_NAME            project_name set
    5. INTERACTIVE             list projects and let the user choose

Password branches obtain a TOTP code first when the record requires one.
The prompt is deferred until the first request that actually goes to the
network, so a run served entirely from the token cache never prompts.
Application credentials never prompt.

Any identity-service error aborts the run; no branch falls back to another.
Cache problems are logged and otherwise ignored.
"""

from __future__ import annotations

__all__ = [
    "AuthOrchestrator",
    "AuthResult",
    "Chooser",
    "ScopeSelection",
    "TotpPrompt",
    "select_scope",
]

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from os_creds.cache.store import CacheStore
from os_creds.credentials.record import Credentials
from os_creds.exceptions import CacheError, ProtocolError, SelectionError
from os_creds.keystone.client import IdentityClient
from os_creds.keystone.projects import ProjectLister
from os_creds.keystone.schemas import KeystoneToken, Project
from os_creds.telemetry.system_logger import get_system_logger

# Returns a one-time code typed by the user
TotpPrompt = Callable[[], str]

# (prompt, [(id, label), ...]) -> chosen id, or None when nothing was chosen
Chooser = Callable[[str, Sequence[tuple[str, str]]], str | None]


class ScopeSelection(Enum):
    """Which authentication branch a credential record takes."""

    APPLICATION_CREDENTIAL = "application_credential"
    SYSTEM = "system"
    PROJECT_ID = "project_id"
    PROJECT_NAME = "project_name"
    INTERACTIVE = "interactive"


def select_scope(record: Credentials) -> ScopeSelection:
    """Decide the authentication branch for a record. First match wins."""
    if record.is_application_credential:
        return ScopeSelection.APPLICATION_CREDENTIAL
    if record.system_scope:
        return ScopeSelection.SYSTEM
    if record.project_id:
        return ScopeSelection.PROJECT_ID
    if record.project_name:
        return ScopeSelection.PROJECT_NAME
    return ScopeSelection.INTERACTIVE


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful authentication.

    Exactly one of project and system_scope is set.

    Attributes:
        token: Token to export.
        selection: Branch that produced the token.
        project: Project the token is scoped to.
        system_scope: System scope the token is for.
        from_cache: True when the token came from the token cache.
        chosen_interactively: True when the user picked the project.
    """

    token: str
    selection: ScopeSelection
    project: Project | None = None
    system_scope: str | None = None
    from_cache: bool = False
    chosen_interactively: bool = False

    @property
    def scope_descriptor(self) -> str:
        """The system scope string, or the project id."""
        if self.system_scope is not None:
            return self.system_scope
        return self.project.id if self.project else ""


class AuthOrchestrator:
    """Runs the authentication branch selected for a credential record.

    Usage:
        with IdentityClient(timeout=30) as client:
            orchestrator = AuthOrchestrator(
                client,
                ProjectLister(client.http_client),
                CacheStore(),
                totp_prompt=prompt_totp,
                chooser=choose,
            )
            result = orchestrator.authenticate(record)

    Args:
        identity_client: Keystone token client.
        project_lister: Project listing client.
        cache_store: Cache for project listings and tokens, or None to disable caching.
        totp_prompt: Asks the user for a one-time code.
        chooser: Asks the user to pick one of several projects.
        logger: Diagnostics logger (default: the system logger).
        use_token_cache: Reuse unexpired cached tokens. Tokens are still
            written to the cache when False.
    """

    def __init__(
        self,
        identity_client: IdentityClient,
        project_lister: ProjectLister,
        cache_store: CacheStore | None,
        *,
        totp_prompt: TotpPrompt,
        chooser: Chooser,
        logger: logging.Logger | None = None,
        use_token_cache: bool = True,
    ) -> None:
        self._identity = identity_client
        self._lister = project_lister
        self._cache = cache_store
        self._totp_prompt = totp_prompt
        self._chooser = chooser
        self._logger = logger or get_system_logger()
        self._use_token_cache = use_token_cache

    def authenticate(self, record: Credentials) -> AuthResult:
        """Obtain a token for the record.

        Returns:
            AuthResult with the token and its scope.

        Raises:
            TransportError: On network failure.
            ProtocolError: On an unexpected identity-service response.
            AuthenticationFailure: When the identity service rejects the request.
            SelectionError: When there is no project to choose or none was chosen.
        """
        selection = select_scope(record)
        self._logger.debug(
            {
                "event": "scope_selected",
                "selection": selection.value,
                "auth_url": record.auth_url,
                "totp_required": record.totp_required,
            }
        )

        if selection is ScopeSelection.APPLICATION_CREDENTIAL:
            return self._authenticate_application_credential(record)

        run = _PasswordRun(record, self._totp_prompt, self._logger)

        if selection is ScopeSelection.SYSTEM:
            return self._authenticate_system(run)
        if selection is ScopeSelection.PROJECT_ID:
            return self._authenticate_project_id(run)
        if selection is ScopeSelection.PROJECT_NAME:
            return self._authenticate_project_name(run)
        return self._authenticate_interactive(run)

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    def _authenticate_application_credential(self, record: Credentials) -> AuthResult:
        issued = self._identity.request_application_credential_token(record)
        return AuthResult(
            token=issued.subject_token,
            selection=ScopeSelection.APPLICATION_CREDENTIAL,
            project=issued.project,
        )

    def _authenticate_system(self, run: _PasswordRun) -> AuthResult:
        record = run.record
        token, from_cache = self._cached_or_issue(
            run,
            project_id="",
            issue=lambda: self._identity.request_unscoped_token(run.with_totp()),
        )
        return AuthResult(
            token=token,
            selection=ScopeSelection.SYSTEM,
            system_scope=record.system_scope,
            from_cache=from_cache,
        )

    def _authenticate_project_id(self, run: _PasswordRun) -> AuthResult:
        record = run.record
        issued: list[KeystoneToken] = []

        def issue() -> KeystoneToken:
            token = self._identity.request_scoped_token(run.with_totp(), record.project_id)
            issued.append(token)
            return token

        token, from_cache = self._cached_or_issue(run, project_id=record.project_id, issue=issue)

        name = record.project_name
        if issued and issued[0].project is not None and issued[0].project.name:
            name = issued[0].project.name

        return AuthResult(
            token=token,
            selection=ScopeSelection.PROJECT_ID,
            project=Project(id=record.project_id, name=name),
            from_cache=from_cache,
        )

    def _authenticate_project_name(self, run: _PasswordRun) -> AuthResult:
        record = run.record
        issued = self._identity.request_scoped_token_by_name(run.with_totp(), record.project_name)
        project = issued.project
        if project is None or not project.id:
            raise ProtocolError(f"Token response for project {record.project_name!r} names no project")

        # Cached under the resolved id so later by-id lookups can reuse it
        self._remember_token(run.record, project.id, issued)
        return AuthResult(
            token=issued.subject_token,
            selection=ScopeSelection.PROJECT_NAME,
            project=project,
        )

    def _authenticate_interactive(self, run: _PasswordRun) -> AuthResult:
        record = run.record

        unscoped, _ = self._cached_or_issue(
            run,
            project_id="",
            issue=lambda: self._identity.request_unscoped_token(run.with_totp()),
        )

        projects = self._load_cached_projects(record.auth_url)
        if projects is None:
            # Code first: listing projects goes to the network
            run.with_totp()
            projects = self._lister.list_projects(record.auth_url, unscoped)
            self._save_projects(record.auth_url, projects)

        if not projects:
            raise SelectionError("No projects found")

        chosen_id = self._chooser(
            "Select project:",
            [(project.id, _project_label(project)) for project in projects],
        )
        project = next((p for p in projects if p.id == chosen_id), None)
        if project is None:
            raise SelectionError("No project selected")

        self._logger.debug({"event": "project_selected", "project_id": project.id})

        token, from_cache = self._cached_or_issue(
            run,
            project_id=project.id,
            issue=lambda: self._identity.request_scoped_token(run.with_totp(), project.id),
        )
        return AuthResult(
            token=token,
            selection=ScopeSelection.INTERACTIVE,
            project=project,
            from_cache=from_cache,
            chosen_interactively=True,
        )

    # -------------------------------------------------------------------------
    # Cache helpers
    # -------------------------------------------------------------------------

    def _cached_or_issue(
        self,
        run: _PasswordRun,
        *,
        project_id: str,
        issue: Callable[[], KeystoneToken],
    ) -> tuple[str, bool]:
        """Return (token, from_cache): a live cached token, else a freshly issued one."""
        record = run.record
        if self._cache is not None and self._use_token_cache:
            cached = self._cache.load_token(record.auth_url, record.username, record.user_domain, project_id)
            if cached is not None:
                self._logger.debug({"event": "token_from_cache", "project_id": project_id or None})
                return cached, True

        issued = issue()
        self._remember_token(record, project_id, issued)
        return issued.subject_token, False

    def _remember_token(self, record: Credentials, project_id: str, issued: KeystoneToken) -> None:
        if self._cache is None:
            return
        if not issued.expires_at:
            self._logger.debug({"event": "token_not_cached", "reason": "no expires_at in response"})
            return
        try:
            self._cache.save_token(
                record.auth_url,
                record.username,
                record.user_domain,
                project_id,
                issued.subject_token,
                issued.expires_at,
            )
        except (CacheError, ProtocolError) as e:
            self._logger.warning({"event": "token_cache_write_failed", "error": str(e)})

    def _load_cached_projects(self, auth_url: str) -> list[Project] | None:
        if self._cache is None:
            return None
        return self._cache.load_projects(auth_url)

    def _save_projects(self, auth_url: str, projects: list[Project]) -> None:
        if self._cache is None:
            return
        try:
            self._cache.save_projects(auth_url, projects)
        except CacheError as e:
            self._logger.warning({"event": "project_cache_write_failed", "error": str(e)})


class _PasswordRun:
    """Password-auth state for one run: the record plus a lazily prompted TOTP code."""

    def __init__(self, record: Credentials, totp_prompt: TotpPrompt, logger: logging.Logger) -> None:
        self.record = record
        self._totp_prompt = totp_prompt
        self._logger = logger
        self._prompted = False

    def with_totp(self) -> Credentials:
        """Record to send, prompting once for a TOTP code if one is required and missing."""
        if self.record.totp_required and not self.record.totp_code and not self._prompted:
            self._prompted = True
            code = self._totp_prompt().strip()
            self._logger.debug({"event": "totp_entered", "code_length": len(code)})
            self.record = self.record.model_copy(update={"totp_code": code})
        return self.record


def _project_label(project: Project) -> str:
    if project.description:
        return f"{project.name} ({project.description})"
    return project.name
