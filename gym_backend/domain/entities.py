"""
Name: Account Entities

Responsibilities:
  - Define the User record owned by the user store
  - Derive the account state (unlocked, locked, deactivated) from stored fields

Collaborators:
  - identity.account_security: the only writer of lock and attempt fields
  - infrastructure.repositories: map rows into User records

Notes:
  - AccountState is computed at a given instant, never stored
  - All datetimes are timezone-aware UTC
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AccountState(str, Enum):
    """R: Authentication-relevant state of an account."""

    ACTIVE_UNLOCKED = "active_unlocked"
    ACTIVE_LOCKED = "active_locked"
    DEACTIVATED = "deactivated"


@dataclass
class User:
    """R: User record used by authentication flows."""

    username: str
    password_hash: str
    first_name: str = ""
    last_name: str = ""
    is_active: bool = True
    failed_login_attempts: int = 0
    lock_until: datetime | None = None
    created_at: datetime | None = None

    def is_locked(self, now: datetime) -> bool:
        return self.lock_until is not None and self.lock_until > now

    def state(self, now: datetime) -> AccountState:
        if not self.is_active:
            return AccountState.DEACTIVATED
        if self.is_locked(now):
            return AccountState.ACTIVE_LOCKED
        return AccountState.ACTIVE_UNLOCKED
