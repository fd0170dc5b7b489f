"""
Exception types raised inside the devrant client.

Operations catch these at their boundary and turn them into Failure
results, so callers only see them when using the lower layers directly.
"""

from __future__ import annotations


class DevRantError(RuntimeError):
    """Base class for every error raised by this package."""


class ConfigError(DevRantError):
    """Raised when configuration is missing or invalid."""


class AuthError(DevRantError):
    """Raised when a session cannot be established or refreshed."""


class DecodeError(DevRantError):
    """Raised when a required field is missing or has the wrong shape."""

    def __init__(self, entity: str, field: str, reason: str = "missing or invalid"):
        self.entity = entity
        self.field = field
        self.reason = reason
        super().__init__(f"{entity}.{field}: {reason}")


class TransportError(DevRantError):
    """Raised when the HTTP exchange itself fails."""

    def __init__(self, message: str, timed_out: bool = False):
        self.timed_out = timed_out
        super().__init__(message)


class StorageError(DevRantError):
    """Raised when the secret store or the cache cannot be read or written."""
