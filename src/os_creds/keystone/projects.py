"""Project listing for interactive scope selection."""

from __future__ import annotations

import logging

import httpx

from os_creds.constants import AUTH_TOKEN_HEADER, PROJECTS_PATH
from os_creds.exceptions import AuthenticationFailure, ProtocolError, TransportError
from os_creds.keystone.client import build_url
from os_creds.keystone.schemas import Project, ProjectListResponse
from os_creds.telemetry.system_logger import get_system_logger


class ProjectLister:
    """Lists the projects an (unscoped) token is authorized for.

    Args:
        http_client: HTTP client, normally IdentityClient.http_client.
        logger: Diagnostics logger (default: the system logger).
    """

    def __init__(self, http_client: httpx.Client, *, logger: logging.Logger | None = None) -> None:
        self._client = http_client
        self._logger = logger or get_system_logger()

    def list_projects(self, auth_url: str, token: str) -> list[Project]:
        """Return enabled projects sorted by name.

        Raises:
            TransportError: On connection failure.
            AuthenticationFailure: On any non-200 response.
            ProtocolError: If the body is not a valid project listing.
        """
        url = build_url(auth_url, PROJECTS_PATH)
        self._logger.debug({"event": "projects_request", "url": url})

        try:
            response = self._client.get(url, headers={AUTH_TOKEN_HEADER: token})
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise AuthenticationFailure(
                "failed to list projects",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            listing = ProjectListResponse.model_validate(response.json())
        except ValueError as e:
            raise ProtocolError(f"Failed to parse project listing: {e}") from e

        projects = [
            Project(id=entry.id, name=entry.name, description=entry.description or "")
            for entry in listing.projects
            if entry.enabled
        ]
        # sorted() is stable, so equal names keep listing order
        projects = sorted(projects, key=lambda p: p.name)

        self._logger.debug(
            {"event": "projects_listed", "total": len(listing.projects), "enabled": len(projects)}
        )
        return projects
