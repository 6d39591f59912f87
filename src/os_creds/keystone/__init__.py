"""Keystone v3 identity API: token requests and project listing."""

from os_creds.keystone.client import IdentityClient, build_url, normalize_auth_url
from os_creds.keystone.projects import ProjectLister
from os_creds.keystone.schemas import KeystoneToken, Project, TokenResponse

__all__ = [
    "IdentityClient",
    "KeystoneToken",
    "Project",
    "ProjectLister",
    "TokenResponse",
    "build_url",
    "normalize_auth_url",
]
