"""Diagnostics for os-creds."""

from os_creds.telemetry.system_logger import configure_system_logger, get_system_logger

__all__ = ["configure_system_logger", "get_system_logger"]
