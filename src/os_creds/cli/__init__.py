"""Command-line interface for os-creds.

Provides commands for resolving credentials into tokens, listing
credentials, and managing the cache.
"""

from .main import cli, main

__all__ = ["cli", "main"]
