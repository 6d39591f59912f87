"""List command for os-creds CLI."""

from __future__ import annotations

from pathlib import Path

import click

from os_creds.cli.prompts import highlight
from os_creds.config import AppConfig
from os_creds.credentials import find_credential_files


@click.command("list")
@click.option(
    "--store-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Password store root (default: $PASSWORD_STORE_DIR or ~/.password-store)",
)
@click.pass_obj
def list_credentials(config: AppConfig, store_dir: Path | None) -> None:
    """List credentials in the password store."""
    root = store_dir or config.resolve_password_store_dir()
    files = find_credential_files(root)
    if not files:
        click.echo(f"No credentials found in {root}", err=True)
        return
    for credential_file in files:
        click.echo(highlight(credential_file.display_name))
