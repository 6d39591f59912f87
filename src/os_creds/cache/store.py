"""File-backed cache for project listings and tokens.

Both namespaces share one directory:

    <cache_dir>/
    ├── projects_<hex(auth_url)>.json    # ProjectCacheEntry, trusted for 7 days
    └── token_<sha256>.json              # TokenCacheEntry, trusted until expires_at

Reads never fail: a missing, unreadable, corrupt, mismatched or expired
file is a cache miss. Expired tokens are deleted when read. Writes raise
CacheError and callers decide whether to ignore it.

There is no locking; concurrent invocations race and the last writer wins.
"""

from __future__ import annotations

__all__ = [
    "CacheStore",
    "parse_expires_at",
    "project_cache_filename",
    "token_cache_key",
]

import hashlib
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from pydantic import ValidationError

from os_creds.cache.models import ProjectCacheEntry, TokenCacheEntry
from os_creds.constants import (
    CACHE_DIR_MODE,
    CACHE_FILE_SUFFIX,
    DEFAULT_CACHE_DIR,
    PROJECT_CACHE_PREFIX,
    TOKEN_CACHE_PREFIX,
)
from os_creds.exceptions import CacheError, ProtocolError
from os_creds.keystone.schemas import Project
from os_creds.telemetry.system_logger import get_system_logger
from os_creds.utils.file_helpers import write_private_json

EntryT = TypeVar("EntryT", ProjectCacheEntry, TokenCacheEntry)


def project_cache_filename(auth_url: str) -> str:
    """File name for a project listing: the raw auth URL, hex encoded."""
    return f"{PROJECT_CACHE_PREFIX}{auth_url.encode('utf-8').hex()}{CACHE_FILE_SUFFIX}"


def token_cache_key(auth_url: str, username: str, user_domain: str, project_id: str = "") -> str:
    """SHA-256 hex key of "auth_url|username|user_domain[|project_id]".

    The project suffix is left out for unscoped and system-scope tokens.
    """
    data = f"{auth_url}|{username}|{user_domain}"
    if project_id:
        data += f"|{project_id}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def parse_expires_at(expires_at: str) -> datetime:
    """Parse a Keystone expiry timestamp.

    Keystone sends e.g. "2025-01-15T10:30:00.000000Z"; any number of
    trailing "Z" (including none) is normalized to exactly one.

    Raises:
        ProtocolError: If the timestamp cannot be parsed.
    """
    normalized = expires_at.rstrip("Z") + "Z"
    try:
        return datetime.fromisoformat(normalized)
    except ValueError as e:
        raise ProtocolError(f"Unparseable token expiry {expires_at!r}") from e


class CacheStore:
    """Project and token cache rooted at one directory.

    Args:
        cache_dir: Cache directory (default: per-user cache dir). Created if absent.
        logger: Diagnostics logger (default: the system logger).
    """

    def __init__(self, cache_dir: Path | None = None, *, logger: logging.Logger | None = None) -> None:
        self._dir = Path(cache_dir or DEFAULT_CACHE_DIR)
        self._logger = logger or get_system_logger()
        try:
            self._dir.mkdir(mode=CACHE_DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            # Reads degrade to misses, writes raise CacheError
            self._logger.warning({"event": "cache_dir_unavailable", "path": str(self._dir), "error": str(e)})

    @property
    def cache_dir(self) -> Path:
        return self._dir

    # -------------------------------------------------------------------------
    # Project listings
    # -------------------------------------------------------------------------

    def project_cache_path(self, auth_url: str) -> Path:
        return self._dir / project_cache_filename(auth_url)

    def load_projects(self, auth_url: str) -> list[Project] | None:
        """Return the cached listing for auth_url, or None on any miss.

        auth_url must be the exact string used when saving.
        """
        path = self.project_cache_path(auth_url)
        entry = self._read(path, ProjectCacheEntry)
        if entry is None:
            return None

        if entry.auth_url != auth_url:
            self._logger.debug({"event": "project_cache_mismatch", "path": str(path)})
            return None

        if not entry.is_fresh():
            self._logger.debug({"event": "project_cache_stale", "timestamp": entry.timestamp.isoformat()})
            return None

        self._logger.debug({"event": "project_cache_hit", "count": len(entry.projects)})
        return entry.projects

    def save_projects(self, auth_url: str, projects: list[Project]) -> None:
        """Cache a listing for auth_url, replacing any previous one.

        Raises:
            CacheError: If the file cannot be written.
        """
        entry = ProjectCacheEntry(projects=projects, auth_url=auth_url)
        self._write(self.project_cache_path(auth_url), entry.model_dump(mode="json"))

    def clear_projects(self, auth_url: str) -> None:
        """Remove the cached listing for auth_url. No error if absent.

        Raises:
            CacheError: If an existing file cannot be removed.
        """
        self._remove(self.project_cache_path(auth_url))

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------

    def token_cache_path(self, auth_url: str, username: str, user_domain: str, project_id: str = "") -> Path:
        key = token_cache_key(auth_url, username, user_domain, project_id)
        return self._dir / f"{TOKEN_CACHE_PREFIX}{key}{CACHE_FILE_SUFFIX}"

    def load_token(self, auth_url: str, username: str, user_domain: str, project_id: str = "") -> str | None:
        """Return a cached token that has not expired, or None.

        An expired entry is deleted before returning None.
        """
        path = self.token_cache_path(auth_url, username, user_domain, project_id)
        entry = self._read(path, TokenCacheEntry)
        if entry is None:
            return None

        if entry.is_expired:
            self._logger.debug({"event": "token_cache_expired", "expires_at": entry.expires_at.isoformat()})
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                self._logger.debug({"event": "token_cache_evict_failed", "error": str(e)})
            return None

        self._logger.debug(
            {"event": "token_cache_hit", "seconds_until_expiry": round(entry.seconds_until_expiry)}
        )
        return entry.token

    def save_token(
        self,
        auth_url: str,
        username: str,
        user_domain: str,
        project_id: str,
        token: str,
        expires_at: str,
    ) -> None:
        """Cache a token until expires_at, replacing any previous entry.

        Raises:
            ProtocolError: If expires_at cannot be parsed.
            CacheError: If the file cannot be written.
        """
        entry = TokenCacheEntry(token=token, expires_at=parse_expires_at(expires_at))
        self._write(
            self.token_cache_path(auth_url, username, user_domain, project_id),
            entry.model_dump(mode="json"),
        )

    def clear_token(self, auth_url: str, username: str, user_domain: str, project_id: str = "") -> None:
        """Remove a cached token. No error if absent.

        Raises:
            CacheError: If an existing file cannot be removed.
        """
        self._remove(self.token_cache_path(auth_url, username, user_domain, project_id))

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def clear_all(self) -> int:
        """Remove every cached listing and token.

        Returns:
            Number of files removed.

        Raises:
            CacheError: If a file cannot be removed.
        """
        if not self._dir.is_dir():
            return 0

        removed = 0
        for prefix in (PROJECT_CACHE_PREFIX, TOKEN_CACHE_PREFIX):
            for path in self._dir.glob(f"{prefix}*{CACHE_FILE_SUFFIX}"):
                self._remove(path)
                removed += 1
        return removed

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _read(self, path: Path, model: type[EntryT]) -> EntryT | None:
        try:
            # Decoding happens in validation, where bad UTF-8 is a miss too
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            self._logger.debug({"event": "cache_read_failed", "path": str(path), "error": str(e)})
            return None

        try:
            return model.model_validate_json(data)
        except ValidationError as e:
            self._logger.debug(
                {"event": "cache_entry_invalid", "path": str(path), "errors": e.error_count()}
            )
            return None
        except UnicodeDecodeError as e:
            self._logger.debug({"event": "cache_entry_invalid", "path": str(path), "error": e.reason})
            return None

    def _write(self, path: Path, data: dict[str, Any]) -> None:
        try:
            write_private_json(path, data)
        except OSError as e:
            raise CacheError(f"Cannot write cache file {path}: {e}") from e
        self._logger.debug({"event": "cache_written", "path": str(path)})

    def _remove(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise CacheError(f"Cannot remove cache file {path}: {e}") from e
