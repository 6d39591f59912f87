"""File-backed cache for project listings and tokens."""

from os_creds.cache.models import ProjectCacheEntry, TokenCacheEntry
from os_creds.cache.store import CacheStore, parse_expires_at, token_cache_key

__all__ = [
    "CacheStore",
    "ProjectCacheEntry",
    "TokenCacheEntry",
    "parse_expires_at",
    "token_cache_key",
]
