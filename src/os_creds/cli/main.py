"""Main CLI entry point for os-creds.

Defines the CLI group and registers all subcommands.

Commands:
    token   - Resolve a credential and print shell exports
    list    - List credentials in the password store
    cache   - Cache management commands
        clear - Remove cached project listings and tokens
        path  - Show the cache directory

Usage:
    os-creds -h, --help          Show help message
    os-creds -v, --version       Show version
    os-creds --debug token       Log debug events (JSON lines) to stderr
    eval "$(os-creds token)"     Export a token for a chosen credential
    os-creds token NAME          Export a token for a named credential
    os-creds list                List credentials
    os-creds cache clear         Clear cached projects and tokens
"""

import sys

import click

from os_creds import __version__
from os_creds.config import AppConfig, get_config_path
from os_creds.telemetry.system_logger import configure_system_logger

from .commands.cache import cache
from .commands.listing import list_credentials
from .commands.token import token


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option("--debug", is_flag=True, help="Log debug events to stderr")
@click.pass_context
def cli(ctx: click.Context, version: bool, debug: bool) -> None:
    """os-creds: OpenStack credentials from your password store as Keystone tokens."""
    if version:
        click.echo(f"os-creds {__version__}")
        sys.exit(0)

    try:
        config = AppConfig.load_or_default(get_config_path())
    except ValueError as e:
        raise click.ClickException(f"Failed to load configuration: {e}") from e

    configure_system_logger("DEBUG" if debug else config.log_level)
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(token)
cli.add_command(list_credentials)
cli.add_command(cache)


def main() -> None:
    """CLI entry point."""
    cli()
