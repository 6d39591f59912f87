"""Shell export output for resolved credentials."""

from __future__ import annotations

import shlex

from os_creds.credentials.record import Credentials
from os_creds.orchestrator import AuthResult


def format_exports(display_name: str, record: Credentials, result: AuthResult) -> list[str]:
    """Build the `export` lines for a resolved token.

    Args:
        display_name: Credential name shown in OS_CRED.
        record: Credential record the token was issued for.
        result: Orchestrator result.

    Returns:
        Lines ready to be evaluated by a POSIX shell.
    """
    if result.system_scope is not None:
        cred_name = f"{display_name}/system"
        scope = [("OS_SYSTEM_SCOPE", result.system_scope)]
    else:
        cred_name = display_name
        if result.chosen_interactively and result.project is not None:
            cred_name = f"{display_name}/{result.project.name}"
        scope = [("OS_PROJECT_ID", result.project.id if result.project else "")]

    variables = [
        ("OS_CRED", cred_name),
        ("OS_IDENTITY_API_VERSION", "3"),
        ("OS_AUTH_URL", record.auth_url),
        *scope,
        ("OS_TOKEN", result.token),
        ("OS_AUTH_TYPE", "token"),
    ]
    if record.region:
        variables.append(("OS_REGION_NAME", record.region))

    return [f"export {name}={shlex.quote(value)}" for name, value in variables]
