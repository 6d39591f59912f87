"""Application-wide constants for os-creds.

Constants that define application behavior.
For user-configurable settings, see config.py.
"""

import os

from platformdirs import user_cache_dir

# ============================================================================
# Application Directories
# ============================================================================

APP_NAME: str = "os-creds"

# Per-user cache root for cached project lists and tokens.
# platformdirs honours XDG_CACHE_HOME on Linux.
#
# Platform-specific paths:
# - macOS: ~/Library/Caches/os-creds/
# - Linux: ~/.cache/os-creds/
# - Windows: %LOCALAPPDATA%\os-creds\Cache\
DEFAULT_CACHE_DIR: str = user_cache_dir(APP_NAME, appauthor=False)

# Default `pass` store location when PASSWORD_STORE_DIR is unset
DEFAULT_PASSWORD_STORE_DIR: str = os.path.join("~", ".password-store")

# Config file name inside click.get_app_dir(APP_NAME)
CONFIG_FILENAME: str = "config.json"

# ============================================================================
# HTTP Configuration
# ============================================================================

# Default timeout for Keystone requests (seconds)
DEFAULT_HTTP_TIMEOUT_SECONDS: int = 30

# Timeout validation range (seconds)
MIN_HTTP_TIMEOUT_SECONDS: int = 1
MAX_HTTP_TIMEOUT_SECONDS: int = 300  # 5 minutes

# ============================================================================
# Keystone v3 Identity API
# ============================================================================

# Request paths, appended to the normalized auth URL
TOKENS_PATH: str = "/v3/auth/tokens"
TOKENS_PATH_NO_CATALOG: str = "/v3/auth/tokens?nocatalog"
PROJECTS_PATH: str = "/v3/auth/projects"

SUBJECT_TOKEN_HEADER: str = "X-Subject-Token"
AUTH_TOKEN_HEADER: str = "X-Auth-Token"

# Domain used when a credential names neither a domain id nor a domain name
DEFAULT_USER_DOMAIN_NAME: str = "Default"

# ============================================================================
# Cache Policy
# ============================================================================

# Cached project lists are trusted for 7 days
PROJECT_CACHE_EXPIRY_DAYS: int = 7

PROJECT_CACHE_PREFIX: str = "projects_"
TOKEN_CACHE_PREFIX: str = "token_"
CACHE_FILE_SUFFIX: str = ".json"

# Cache files hold bearer tokens
CACHE_DIR_MODE: int = 0o700
CACHE_FILE_MODE: int = 0o600

# ============================================================================
# Credential Files
# ============================================================================

# Encrypted openrc entries inside the pass store
OPENRC_SUFFIX: str = ".openrc"
GPG_SUFFIX: str = ".gpg"

# Keywords in credential names that select a highlight colour in menus
KEYWORD_COLOURS: dict[str, str] = {
    "production/": "red",
    "rctest/": "yellow",
    "development/": "magenta",
}
