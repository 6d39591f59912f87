"""Cache commands for os-creds CLI.

Commands:
    cache clear - Remove cached project listings and tokens
    cache path  - Show the cache directory
"""

from __future__ import annotations

from pathlib import Path

import click

from os_creds.cache.store import CacheStore
from os_creds.config import AppConfig
from os_creds.exceptions import CacheError


@click.group()
def cache() -> None:
    """Cache management commands."""
    pass


@cache.command()
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Cache directory for projects and tokens",
)
@click.pass_obj
def clear(config: AppConfig, cache_dir: Path | None) -> None:
    """Remove all cached project listings and tokens."""
    store = CacheStore(cache_dir or config.resolve_cache_dir())
    try:
        removed = store.clear_all()
    except CacheError as e:
        raise click.ClickException(f"Failed to clear cache: {e}") from e
    click.echo(f"Removed {removed} cache file{'s' if removed != 1 else ''} from {store.cache_dir}")


@cache.command()
@click.pass_obj
def path(config: AppConfig) -> None:
    """Show the cache directory."""
    click.echo(str(config.resolve_cache_dir()))
