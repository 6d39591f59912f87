"""Shared helpers for os-creds."""
