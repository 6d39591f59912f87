"""os-creds: resolve OpenStack credentials into scoped Keystone tokens."""

__version__ = "0.3.0"
