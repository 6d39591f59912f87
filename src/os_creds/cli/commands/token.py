"""Token command for os-creds CLI.

Resolves a credential into a Keystone token and prints shell exports:

    eval "$(os-creds token)"
"""

from __future__ import annotations

from pathlib import Path

import click

from os_creds.cache.store import CacheStore
from os_creds.cli.output import format_exports
from os_creds.cli.prompts import choose, highlight, prompt_totp
from os_creds.config import AppConfig
from os_creds.constants import MAX_HTTP_TIMEOUT_SECONDS, MIN_HTTP_TIMEOUT_SECONDS, OPENRC_SUFFIX
from os_creds.credentials import (
    CredentialFile,
    Credentials,
    find_credential_files,
    load_credentials,
    load_credentials_file,
)
from os_creds.exceptions import OsCredsError
from os_creds.keystone import IdentityClient, ProjectLister
from os_creds.orchestrator import AuthOrchestrator


def select_credential_file(files: list[CredentialFile], name: str | None) -> CredentialFile:
    """Pick a credential file by exact name, or interactively.

    Raises:
        click.ClickException: If nothing matches or nothing was selected.
    """
    if name is not None:
        for credential_file in files:
            if credential_file.display_name == name:
                return credential_file
        raise click.ClickException(f"No credential named {name!r}")

    by_path = {f.path: f for f in files}
    chosen = choose(
        "Select credential file:",
        [(f.path, f.display_name) for f in files],
    )
    if chosen is None:
        raise click.ClickException("No credential file selected")
    return by_path[chosen]


def _load_record(
    config: AppConfig,
    name: str | None,
    openrc_file: Path | None,
    store_dir: Path | None,
) -> tuple[str, Credentials]:
    """Load the credential record and the name to display for it."""
    if openrc_file is not None:
        return openrc_file.name.removesuffix(OPENRC_SUFFIX), load_credentials_file(openrc_file)

    root = store_dir or config.resolve_password_store_dir()
    files = find_credential_files(root)
    if not files:
        raise click.ClickException(f"No {OPENRC_SUFFIX} files found in {root}")

    credential_file = select_credential_file(files, name)
    return credential_file.display_name, load_credentials(root, credential_file)


@click.command()
@click.argument("name", required=False)
@click.option(
    "--file",
    "openrc_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read a plain openrc file instead of the password store",
)
@click.option(
    "--no-cache",
    is_flag=True,
    help="Always request a new token (the cache is still updated)",
)
@click.option(
    "--store-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Password store root (default: $PASSWORD_STORE_DIR or ~/.password-store)",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Cache directory for projects and tokens",
)
@click.option(
    "--timeout",
    type=click.IntRange(MIN_HTTP_TIMEOUT_SECONDS, MAX_HTTP_TIMEOUT_SECONDS),
    help="Keystone request timeout in seconds",
)
@click.pass_obj
def token(
    config: AppConfig,
    name: str | None,
    openrc_file: Path | None,
    no_cache: bool,
    store_dir: Path | None,
    cache_dir: Path | None,
    timeout: int | None,
) -> None:
    """Print shell exports with a token for a credential.

    NAME selects a credential by its name in the password store
    (e.g. "production/cloud"). Without NAME you are asked to choose.
    Menus and prompts go to stderr, so the output can be evaluated:

        eval "$(os-creds token)"
    """
    try:
        display_name, record = _load_record(config, name, openrc_file, store_dir)

        cache = CacheStore(cache_dir or config.resolve_cache_dir())
        with IdentityClient(timeout=timeout or config.http_timeout) as client:
            orchestrator = AuthOrchestrator(
                client,
                ProjectLister(client.http_client),
                cache,
                totp_prompt=prompt_totp,
                chooser=lambda prompt_text, items: choose(prompt_text, items, colour_hint=display_name),
                use_token_cache=config.token_cache and not no_cache,
            )
            result = orchestrator.authenticate(record)
    except OsCredsError as e:
        raise click.ClickException(str(e)) from e

    source = "cache" if result.from_cache else "keystone"
    click.echo(f"Token for {highlight(display_name)} ({result.scope_descriptor}) from {source}", err=True)
    for line in format_exports(display_name, record, result):
        click.echo(line)
