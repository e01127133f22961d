"""
Custom exception classes for the Autopilot device tools.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for device tool errors."""


class ConfigurationError(MigrationError):
    """Raised when tenant credentials or settings are missing or invalid."""


class InputError(MigrationError):
    """Raised when a bulk input file cannot be used."""


class AuthenticationError(MigrationError):
    """Raised when a tenant token cannot be obtained or is rejected.

    A bad token invalidates every later call, so this aborts the whole run.
    """


class RemoteFailure(MigrationError):
    """Raised when the directory service answers with an unexpected status.

    ``status`` is None when the request never got an HTTP response
    (connection reset, DNS failure, client-side timeout).
    """

    def __init__(self, status: int | None, message: str) -> None:
        super().__init__(f"HTTP {status}: {message}" if status is not None else message)
        self.status: int | None = status
        self.message: str = message
