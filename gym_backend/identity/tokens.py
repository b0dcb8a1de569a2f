"""
Name: Token Service (JWT)

Responsibilities:
  - Issue signed, self-contained access tokens bound to a username and expiry
  - Validate tokens against a supplied instant (signature, claims, expiry)
  - Decode the subject without validation for diagnostics

Collaborators:
  - PyJWT: HMAC signing and decoding
  - identity.auth_users: validates bearer tokens on protected routes
  - auth_routes: issues a token after a successful authenticate()

Constraints:
  - Stateless: no server-side session table, no revocation
  - Signing key is injected once at construction and never changes
  - Invalid tokens are a normal return value (None), never an exception

Notes:
  - Claims: sub, iat, exp, typ
  - Expiry is compared against the caller's `now` so it can be tested
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

CLAIM_SUB = "sub"
CLAIM_IAT = "iat"
CLAIM_EXP = "exp"
CLAIM_TYP = "typ"

TOKEN_TYPE_ACCESS = "access"


@dataclass(frozen=True)
class TokenSettings:
    """R: Signing configuration (snapshot)."""

    secret: str
    ttl: timedelta
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("Token signing secret must not be empty")
        if self.ttl <= timedelta(0):
            raise ValueError("Token ttl must be positive")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """R: Issue and validate bearer session tokens."""

    def __init__(self, settings: TokenSettings):
        self._settings = settings

    @property
    def ttl(self) -> timedelta:
        return self._settings.ttl

    @property
    def expires_in(self) -> int:
        """R: Token lifetime in seconds (for login responses)."""
        return int(self._settings.ttl.total_seconds())

    def issue(self, username: str, now: datetime | None = None) -> str:
        """
        R: Sign a token for an already-authenticated username.
        """
        issued_at = now or _utcnow()
        payload = {
            CLAIM_SUB: username,
            CLAIM_IAT: int(issued_at.timestamp()),
            CLAIM_EXP: int((issued_at + self._settings.ttl).timestamp()),
            CLAIM_TYP: TOKEN_TYPE_ACCESS,
        }
        return jwt.encode(
            payload, self._settings.secret, algorithm=self._settings.algorithm
        )

    def validate(self, token: str, now: datetime | None = None) -> str | None:
        """
        R: Return the subject username, or None when the token is invalid.

        Invalid means: bad signature, malformed, missing claims, wrong type,
        or exp <= now.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret,
                algorithms=[self._settings.algorithm],
                options={
                    "require": [CLAIM_SUB, CLAIM_IAT, CLAIM_EXP],
                    # R: expiry is checked below against the supplied instant
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.PyJWTError:
            return None

        subject = payload.get(CLAIM_SUB)
        if not isinstance(subject, str):
            return None
        if payload.get(CLAIM_TYP, TOKEN_TYPE_ACCESS) != TOKEN_TYPE_ACCESS:
            return None

        try:
            expires_at = int(payload[CLAIM_EXP])
        except (TypeError, ValueError):
            return None

        current = now or _utcnow()
        if expires_at <= current.timestamp():
            return None
        return subject

    def extract_subject(self, token: str) -> str | None:
        """
        R: Best-effort subject decode without signature or expiry checks.

        For logging only. Never use the result for authorization.
        """
        try:
            payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError:
            return None
        subject = payload.get(CLAIM_SUB)
        return subject if isinstance(subject, str) else None
