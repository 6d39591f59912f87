"""Credential source backed by a `pass` password store.

Credentials are openrc files encrypted with gpg and stored as
<store>/<path>.openrc.gpg. Decryption shells out to gpg, which talks to
the user's gpg-agent for the passphrase.
"""

from __future__ import annotations

__all__ = [
    "CredentialFile",
    "decrypt_entry",
    "find_credential_files",
    "get_password_store_dir",
    "load_credentials",
    "load_credentials_file",
]

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from os_creds.constants import DEFAULT_PASSWORD_STORE_DIR, GPG_SUFFIX, OPENRC_SUFFIX
from os_creds.credentials.record import Credentials, parse_openrc
from os_creds.exceptions import CredentialError

GPG_DECRYPT_COMMAND: tuple[str, ...] = ("gpg", "--quiet", "--batch", "--decrypt")


@dataclass(frozen=True)
class CredentialFile:
    """One credential entry in the store.

    Attributes:
        path: Store-relative entry path without ".gpg", e.g. "production/cloud.openrc".
        display_name: Entry name shown to the user, e.g. "production/cloud".
    """

    path: str
    display_name: str


def get_password_store_dir(override: str | Path | None = None) -> Path:
    """Resolve the pass store root: override, then $PASSWORD_STORE_DIR, then ~/.password-store."""
    store_dir = override or os.environ.get("PASSWORD_STORE_DIR") or DEFAULT_PASSWORD_STORE_DIR
    return Path(store_dir).expanduser()


def find_credential_files(store_dir: Path) -> list[CredentialFile]:
    """Find all encrypted openrc entries below store_dir.

    Unreadable directories are skipped.

    Args:
        store_dir: pass store root.

    Returns:
        Credential files sorted by display name.
    """
    suffix = OPENRC_SUFFIX + GPG_SUFFIX
    found: list[CredentialFile] = []

    for root, _dirs, files in os.walk(store_dir):
        for name in files:
            if not name.endswith(suffix):
                continue
            relative = (Path(root) / name).relative_to(store_dir).as_posix()
            entry_path = relative.removesuffix(GPG_SUFFIX)
            found.append(
                CredentialFile(
                    path=entry_path,
                    display_name=entry_path.removesuffix(OPENRC_SUFFIX),
                )
            )

    return sorted(found, key=lambda f: f.display_name)


def decrypt_entry(store_dir: Path, credential_file: CredentialFile) -> str:
    """Decrypt a store entry with gpg.

    Args:
        store_dir: pass store root.
        credential_file: Entry to decrypt.

    Returns:
        Decrypted openrc text.

    Raises:
        CredentialError: If the file is missing, gpg is unavailable, or decryption fails.
    """
    encrypted_path = store_dir / (credential_file.path + GPG_SUFFIX)
    if not encrypted_path.is_file():
        raise CredentialError(f"Credential file not found: {encrypted_path}")

    try:
        result = subprocess.run(
            [*GPG_DECRYPT_COMMAND, str(encrypted_path)],
            capture_output=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise CredentialError("gpg not found; install GnuPG to read the password store") from e

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise CredentialError(f"Failed to decrypt {credential_file.path}: {stderr}")

    return result.stdout.decode("utf-8", errors="replace")


def load_credentials(store_dir: Path, credential_file: CredentialFile) -> Credentials:
    """Decrypt and parse one store entry.

    Raises:
        CredentialError: If decryption fails or the entry has no auth URL.
    """
    return parse_openrc(decrypt_entry(store_dir, credential_file))


def load_credentials_file(path: Path) -> Credentials:
    """Parse a plain (unencrypted) openrc file.

    Raises:
        CredentialError: If the file cannot be read or has no auth URL.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise CredentialError(f"Cannot read credential file {path}: {e}") from e
    return parse_openrc(text)
