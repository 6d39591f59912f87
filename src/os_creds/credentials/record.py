"""Credential record and openrc parsing.

A credential record is the parsed key/value auth material for one identity.
It is either an application credential or password based; within password
based it is system scoped, project scoped, or left for interactive project
selection.
"""

from __future__ import annotations

from pydantic import BaseModel

from os_creds.constants import DEFAULT_USER_DOMAIN_NAME
from os_creds.exceptions import CredentialError

# openrc variable -> Credentials field
OPENRC_FIELDS: dict[str, str] = {
    "OS_AUTH_URL": "auth_url",
    "OS_USERNAME": "username",
    "OS_PASSWORD": "password",
    "OS_USER_DOMAIN_NAME": "user_domain_name",
    "OS_USER_DOMAIN_ID": "user_domain_id",
    "OS_REGION_NAME": "region",
    "OS_PROJECT_ID": "project_id",
    "OS_PROJECT_NAME": "project_name",
    "OS_SYSTEM_SCOPE": "system_scope",
    "OS_APPLICATION_CREDENTIAL_ID": "application_credential_id",
    "OS_APPLICATION_CREDENTIAL_SECRET": "application_credential_secret",
}


class Credentials(BaseModel):
    """Authentication material for one identity.

    Attributes:
        auth_url: Keystone endpoint as stored; may end in "/", "/v3" or "/v3/".
        username: User name for password auth.
        password: User password.
        user_domain_id: User domain id, preferred over the name.
        user_domain_name: User domain name.
        region: Region name, passed through to output only.
        totp_code: One-time code, set once the user supplied it.
        totp_required: Whether a one-time code must be obtained before auth.
        project_id: Project to scope to, preferred over the name.
        project_name: Project to scope to, resolved server side.
        system_scope: Non-empty selects system scope over any project.
        application_credential_id: Application credential id.
        application_credential_secret: Application credential secret.
    """

    auth_url: str
    username: str = ""
    password: str = ""
    user_domain_id: str = ""
    user_domain_name: str = ""
    region: str = ""
    totp_code: str = ""
    totp_required: bool = False
    project_id: str = ""
    project_name: str = ""
    system_scope: str = ""
    application_credential_id: str = ""
    application_credential_secret: str = ""

    @property
    def is_application_credential(self) -> bool:
        """True when both application credential fields are set."""
        return bool(self.application_credential_id and self.application_credential_secret)

    @property
    def has_project_defined(self) -> bool:
        """True when the record names a project by id or name."""
        return bool(self.project_id or self.project_name)

    @property
    def user_domain(self) -> str:
        """Domain value identifying the user: the id if set, else the name."""
        return self.user_domain_id or self.user_domain_name

    def with_default_domain(self) -> Credentials:
        """Return a copy whose domain name defaults to "Default" when neither domain field is set."""
        if self.user_domain_id or self.user_domain_name:
            return self
        return self.model_copy(update={"user_domain_name": DEFAULT_USER_DOMAIN_NAME})


def parse_openrc(text: str) -> Credentials:
    """Parse openrc shell content into a credential record.

    Handles optional "export " prefixes and quoted values. Comments,
    unknown variables and lines without "=" are ignored.

    Args:
        text: openrc file content.

    Returns:
        Credentials with the default user domain applied.

    Raises:
        CredentialError: If OS_AUTH_URL is missing.
    """
    values: dict[str, str | bool] = {}

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export ") :]

        key, sep, value = line.partition("=")
        if not sep:
            continue

        key = key.strip()
        value = value.strip().strip("\"'")

        if key == "OS_TOTP_REQUIRED":
            values["totp_required"] = value.lower() == "true" or value == "1"
        elif key in OPENRC_FIELDS:
            values[OPENRC_FIELDS[key]] = value

    if not values.get("auth_url"):
        raise CredentialError("Credential has no OS_AUTH_URL")

    return Credentials.model_validate(values).with_default_domain()
