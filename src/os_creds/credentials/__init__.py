"""Credential records and the pass store they are read from."""

from os_creds.credentials.password_store import (
    CredentialFile,
    decrypt_entry,
    find_credential_files,
    get_password_store_dir,
    load_credentials,
    load_credentials_file,
)
from os_creds.credentials.record import Credentials, parse_openrc

__all__ = [
    "CredentialFile",
    "Credentials",
    "decrypt_entry",
    "find_credential_files",
    "get_password_store_dir",
    "load_credentials",
    "load_credentials_file",
    "parse_openrc",
]
