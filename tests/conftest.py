"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from os_creds.telemetry.system_logger import get_system_logger


@pytest.fixture(autouse=True)
def reset_system_logger() -> Iterator[None]:
    """Detach handlers the CLI attaches, which point at CliRunner's streams."""
    yield
    logger = get_system_logger()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
