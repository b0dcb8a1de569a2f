"""
Name: Account Security Engine

Responsibilities:
  - Authenticate username/password with brute-force lockout
  - Change passwords after verifying the old one
  - Assign credentials at registration and persist new users
  - Answer username availability

Collaborators:
  - domain.repositories.UserRepository: lookup/update under a per-username lock
  - identity.passwords.PasswordHasher: hash/verify
  - identity.credentials.CredentialGenerator: usernames and passwords
  - domain.services.SecurityMetrics: registration/login/lockout counters
  - tenacity: bounded retry when a concurrent registration claims the handle

Constraints:
  - The lock check happens before password verification
  - Attempt counters only move on the unlocked path
  - Unknown and deactivated users get a plain False (no enumeration signal)
    after a verify against a throwaway digest, so timing matches a bad password
  - A registration is counted once, after the user is stored
  - Never retries authentication internally

Notes:
  - Threshold and lock duration are configuration, not per-user state
  - The clock is injectable so lock windows can be tested
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
)

from ..domain.entities import User
from ..domain.repositories import UserRepository
from ..domain.services import NullSecurityMetrics, SecurityMetrics
from ..exceptions import (
    AccountLockedError,
    AccountNotFoundError,
    InvalidCredentialError,
    UsernameTakenError,
)
from ..logger import logger
from .credentials import CredentialGenerator
from .passwords import PasswordHasher

DEFAULT_MAX_FAILED_ATTEMPTS = 3
DEFAULT_LOCK_DURATION = timedelta(minutes=5)
MAX_REGISTRATION_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _log_registration_retry(retry_state: RetryCallState) -> None:
    """R: Log a lost race for a username before reassigning."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Username claimed concurrently, reassigning",
        extra={
            "username": getattr(exc, "username", None),
            "attempt": retry_state.attempt_number,
        },
    )


class AccountSecurityService:
    """R: Orchestrates authentication, lockout, password change and registration."""

    def __init__(
        self,
        repository: UserRepository,
        hasher: PasswordHasher,
        generator: CredentialGenerator,
        metrics: SecurityMetrics | None = None,
        *,
        max_failed_attempts: int = DEFAULT_MAX_FAILED_ATTEMPTS,
        lock_duration: timedelta = DEFAULT_LOCK_DURATION,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if max_failed_attempts <= 0:
            raise ValueError("max_failed_attempts must be greater than 0")
        if lock_duration <= timedelta(0):
            raise ValueError("lock_duration must be positive")
        self.repository = repository
        self.hasher = hasher
        self.generator = generator
        self.metrics = metrics or NullSecurityMetrics()
        self.max_failed_attempts = max_failed_attempts
        self.lock_duration = lock_duration
        self._clock = clock
        self._dummy_digest: str | None = None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def is_username_taken(self, username: str) -> bool:
        return self.repository.find_by_username(username) is not None

    def assign_credentials(self, first_name: str, last_name: str) -> tuple[str, str]:
        """
        R: Return a free username and a fresh plaintext password.

        Nothing is persisted here.
        """
        username, password = self._generate_credentials(first_name, last_name)
        self.metrics.record_registration()
        return username, password

    def _generate_credentials(self, first_name: str, last_name: str) -> tuple[str, str]:
        username, password = self.generator.assign_credentials(
            first_name, last_name, self.is_username_taken
        )
        logger.info("Assigned username", extra={"username": username})
        return username, password

    def register(self, first_name: str, last_name: str) -> tuple[User, str]:
        """
        R: Assign credentials and create an active user.

        Returns:
            (created user, plaintext password)

        Raises:
            UsernameTakenError: If concurrent registrations keep winning the handle
        """
        retrying = Retrying(
            stop=stop_after_attempt(MAX_REGISTRATION_ATTEMPTS),
            retry=retry_if_exception_type(UsernameTakenError),
            before_sleep=_log_registration_retry,
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._create_with_new_credentials(first_name, last_name)
        raise AssertionError("unreachable")  # pragma: no cover

    def _create_with_new_credentials(
        self, first_name: str, last_name: str
    ) -> tuple[User, str]:
        username, password = self._generate_credentials(first_name, last_name)
        candidate = User(
            username=username,
            password_hash=self.hasher.hash(password),
            first_name=first_name,
            last_name=last_name,
            is_active=True,
        )
        created = self.repository.create(candidate)
        self.metrics.record_registration()
        return created, password

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def authenticate(self, username: str, password: str) -> bool:
        """
        R: Verify credentials and maintain the lockout counters.

        Returns:
            True on success, False for unknown/deactivated users or a bad password

        Raises:
            AccountLockedError: While the account is inside its lock window
        """
        with self.repository.lock_for_update(username) as user:
            if user is None:
                logger.warning(
                    "Authentication failed: user not found",
                    extra={"username": username},
                )
                self.metrics.record_login("unknown")
                self._burn_verify(password)
                return False

            if not user.is_active:
                logger.warning(
                    "Authentication failed: user is deactivated",
                    extra={"username": username},
                )
                self._burn_verify(password)
                self.metrics.record_login("inactive")
                return False

            now = self._clock()
            if user.lock_until is not None:
                if user.lock_until > now:
                    logger.warning(
                        "Authentication refused: user is locked",
                        extra={"username": username, "lock_until": user.lock_until},
                    )
                    self.metrics.record_login("locked")
                    raise AccountLockedError(username, user.lock_until)

                user.lock_until = None
                user.failed_login_attempts = 0
                self.repository.update(user)
                logger.info("Lock expired, counters cleared", extra={"username": username})

            if self.hasher.verify(password, user.password_hash):
                self._on_success(user, password)
                return True

            self._on_failure(user, now)
            return False

    def _burn_verify(self, password: str) -> None:
        """R: Spend one verify so missing users cost as much as wrong passwords."""
        if self._dummy_digest is None:
            self._dummy_digest = self.hasher.hash(secrets.token_urlsafe(16))
        self.hasher.verify(password, self._dummy_digest)

    def _on_success(self, user: User, password: str) -> None:
        dirty = False
        if user.failed_login_attempts > 0 or user.lock_until is not None:
            user.failed_login_attempts = 0
            user.lock_until = None
            dirty = True
        if self.hasher.needs_rehash(user.password_hash):
            # R: work factor changed since this digest was written
            user.password_hash = self.hasher.hash(password)
            dirty = True
        if dirty:
            self.repository.update(user)
        logger.info("User authenticated", extra={"username": user.username})
        self.metrics.record_login("success")

    def _on_failure(self, user: User, now: datetime) -> None:
        user.failed_login_attempts += 1
        if user.failed_login_attempts >= self.max_failed_attempts:
            user.lock_until = now + self.lock_duration
            logger.warning(
                "User locked after repeated failed logins",
                extra={
                    "username": user.username,
                    "attempts": user.failed_login_attempts,
                    "lock_until": user.lock_until,
                },
            )
            self.metrics.record_lockout()
        self.repository.update(user)
        logger.warning(
            "Authentication failed: invalid password",
            extra={"username": user.username, "attempts": user.failed_login_attempts},
        )
        self.metrics.record_login("invalid")

    # ------------------------------------------------------------------
    # Password rotation
    # ------------------------------------------------------------------
    def change_password(self, username: str, old_password: str, new_password: str) -> None:
        """
        R: Replace the password after verifying the old one.

        Lock and attempt counters are left untouched.

        Raises:
            AccountNotFoundError: If the username has no record
            InvalidCredentialError: If old_password does not verify
        """
        with self.repository.lock_for_update(username) as user:
            if user is None:
                raise AccountNotFoundError(username)
            if not self.hasher.verify(old_password, user.password_hash):
                raise InvalidCredentialError(username)

            user.password_hash = self.hasher.hash(new_password)
            self.repository.update(user)
        logger.info("Password changed", extra={"username": username})
