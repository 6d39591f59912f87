"""Application configuration for os-creds.

Configuration is optional. When present it lives at the OS-appropriate
location (via click.get_app_dir), e.g. ~/.config/os-creds/config.json on
Linux. Command-line flags override file values.

Example usage:
    # Load from config file, falling back to defaults
    config = AppConfig.load_or_default(get_config_path())
"""

from pathlib import Path
from typing import Literal

import click
from pydantic import BaseModel, Field

from os_creds.constants import (
    APP_NAME,
    CONFIG_FILENAME,
    DEFAULT_CACHE_DIR,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    MAX_HTTP_TIMEOUT_SECONDS,
    MIN_HTTP_TIMEOUT_SECONDS,
)
from os_creds.credentials.password_store import get_password_store_dir
from os_creds.utils.file_helpers import load_validated_json, require_file_exists


def get_config_path() -> Path:
    """Get the config file path for the current platform."""
    return Path(click.get_app_dir(APP_NAME)) / CONFIG_FILENAME


class AppConfig(BaseModel):
    """User configuration for os-creds.

    Attributes:
        password_store_dir: pass store root (default: $PASSWORD_STORE_DIR or ~/.password-store).
        cache_dir: Directory for cached projects and tokens (default: per-user cache dir).
        http_timeout: Keystone request timeout in seconds (1-300).
        token_cache: Whether to reuse cached tokens that have not expired.
        log_level: System log level; --debug overrides it with DEBUG.
    """

    password_store_dir: str | None = None
    cache_dir: str | None = None
    http_timeout: int = Field(
        default=DEFAULT_HTTP_TIMEOUT_SECONDS,
        ge=MIN_HTTP_TIMEOUT_SECONDS,
        le=MAX_HTTP_TIMEOUT_SECONDS,
    )
    token_cache: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING"] = "WARNING"

    def resolve_password_store_dir(self) -> Path:
        """Resolve the pass store root: config, then PASSWORD_STORE_DIR, then default."""
        return get_password_store_dir(self.password_store_dir)

    def resolve_cache_dir(self) -> Path:
        """Resolve the cache directory: config, then the per-user default."""
        return Path(self.cache_dir or DEFAULT_CACHE_DIR).expanduser()

    @classmethod
    def load_from_files(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file.

        Args:
            config_path: Path to the config file.

        Returns:
            AppConfig instance with loaded configuration.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config file is invalid or has invalid fields.
        """
        require_file_exists(config_path, file_type="configuration")
        return load_validated_json(
            config_path,
            cls,
            file_type="config",
            recovery_hint=f"Fix or remove {config_path} to use defaults.",
            encoding="utf-8",
        )

    @classmethod
    def load_or_default(cls, config_path: Path) -> "AppConfig":
        """Load configuration if the file exists, otherwise return defaults.

        Raises:
            ValueError: If the file exists but is invalid.
        """
        if not config_path.exists():
            return cls()
        return cls.load_from_files(config_path)
