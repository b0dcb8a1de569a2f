"""
Name: Typed Backend Exceptions

Responsibilities:
  - Give internal errors a stable error_code
  - Generate error_id for correlation with logs
  - Carry a human message without secrets

Collaborators:
  - exception_handlers.py: maps these errors to HTTP responses
  - identity.account_security: raises the account errors
  - infrastructure.repositories: raise DatabaseError / UsernameTakenError
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4


class GymError(Exception):
    """Base for internal errors: error_code + error_id + message."""

    error_code: str = "GYM_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)


class DatabaseError(GymError):
    """User store failures (connection, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"


class AccountNotFoundError(GymError):
    """The referenced username has no record."""

    error_code: str = "NOT_FOUND"

    def __init__(self, username: str, **kwargs):
        self.username = username
        super().__init__(f"User profile not found: {username}", **kwargs)


class InvalidCredentialError(GymError):
    """A supplied password does not match the stored hash."""

    error_code: str = "INVALID_CREDENTIAL"

    def __init__(self, username: str, **kwargs):
        self.username = username
        super().__init__(f"Incorrect password for user: {username}", **kwargs)


class AccountLockedError(GymError):
    """
    Authentication refused because the account is inside its lock window.

    Distinct from a bad password: callers must not treat it as a retryable
    credential failure.
    """

    error_code: str = "ACCOUNT_LOCKED"

    def __init__(self, username: str, locked_until: datetime, **kwargs):
        self.username = username
        self.locked_until = locked_until
        super().__init__("User is locked. Try again later.", **kwargs)


class UsernameTakenError(GymError):
    """A record with this username already exists."""

    error_code: str = "USERNAME_TAKEN"

    def __init__(self, username: str, **kwargs):
        self.username = username
        super().__init__(f"Username already exists: {username}", **kwargs)
