"""File helpers shared by configuration loading and the cache store."""

from __future__ import annotations

__all__ = [
    "load_validated_json",
    "require_file_exists",
    "write_private_json",
]

import json
import os
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from os_creds.constants import CACHE_FILE_MODE

ModelT = TypeVar("ModelT", bound=BaseModel)


def require_file_exists(path: Path, file_type: str = "file") -> None:
    """Raise FileNotFoundError with a readable message if path is missing.

    Args:
        path: File that must exist.
        file_type: Human-readable name used in the error.
    """
    if not path.exists():
        raise FileNotFoundError(f"{file_type.capitalize()} file not found: {path}")


def load_validated_json(
    path: Path,
    model: type[ModelT],
    *,
    file_type: str,
    recovery_hint: str = "",
    encoding: str = "utf-8",
) -> ModelT:
    """Load a JSON file and validate it against a pydantic model.

    Args:
        path: JSON file to read.
        model: Model class to validate with.
        file_type: Human-readable name used in errors.
        recovery_hint: Appended to error messages.
        encoding: File encoding.

    Returns:
        Validated model instance.

    Raises:
        ValueError: If the file is not valid JSON or fails validation.
    """
    suffix = f" {recovery_hint}" if recovery_hint else ""
    try:
        with open(path, encoding=encoding) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_type} file {path}: {e}.{suffix}") from e

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid {file_type} file {path}: {e}.{suffix}") from e


def write_private_json(path: Path, data: dict[str, Any]) -> None:
    """Write JSON readable only by the current user.

    The file is created with CACHE_FILE_MODE and truncated if it exists,
    so the contents are never world-readable, even briefly.

    Args:
        path: Destination file.
        data: JSON-serializable payload.

    Raises:
        OSError: If the file cannot be written.
    """
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CACHE_FILE_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    # Pre-existing files keep their old mode through O_CREAT
    path.chmod(CACHE_FILE_MODE)
