"""On-disk cache entry models."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import AwareDatetime, BaseModel, Field

from os_creds.constants import PROJECT_CACHE_EXPIRY_DAYS
from os_creds.keystone.schemas import Project


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectCacheEntry(BaseModel):
    """Cached project listing for one auth URL.

    Attributes:
        projects: Enabled projects, sorted by name.
        timestamp: When the listing was fetched.
        auth_url: Auth URL the listing belongs to, checked on load.
    """

    projects: list[Project]
    timestamp: AwareDatetime = Field(default_factory=_utcnow)
    auth_url: str

    def is_fresh(self, max_age: timedelta = timedelta(days=PROJECT_CACHE_EXPIRY_DAYS)) -> bool:
        """True while the listing is no older than max_age."""
        return _utcnow() - self.timestamp <= max_age


class TokenCacheEntry(BaseModel):
    """Cached token.

    Attributes:
        token: The X-Subject-Token value.
        expires_at: Expiry reported by Keystone.
        cached_at: When the token was written to the cache.
    """

    token: str
    expires_at: AwareDatetime
    cached_at: AwareDatetime = Field(default_factory=_utcnow)

    @property
    def is_expired(self) -> bool:
        """True once expires_at is reached."""
        return _utcnow() >= self.expires_at

    @property
    def seconds_until_expiry(self) -> float:
        """Seconds left before expiry (negative when expired)."""
        return (self.expires_at - _utcnow()).total_seconds()
