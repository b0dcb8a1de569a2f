"""
Name: Password Hasher (Argon2)

Responsibilities:
  - Hash passwords with a salted, work-factor-tunable algorithm
  - Verify passwords without raising on malformed digests
  - Report digests produced with outdated parameters

Collaborators:
  - argon2-cffi: Argon2id implementation with constant-time verification
  - identity.account_security: hashes on register/change, verifies on login
"""

from argon2 import PasswordHasher as _Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError


class PasswordHasher:
    """R: One-way hash/verify for stored credentials."""

    def __init__(
        self,
        *,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ):
        self._hasher = _Argon2Hasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )

    def hash(self, plaintext: str) -> str:
        """R: Salted digest; hashing twice yields different digests."""
        return self._hasher.hash(plaintext)

    def verify(self, plaintext: str, digest: str | None) -> bool:
        """R: True on match; False on mismatch or malformed digest."""
        if not digest:
            return False
        try:
            return self._hasher.verify(digest, plaintext)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, digest: str) -> bool:
        """R: True when digest was produced with different parameters."""
        try:
            return self._hasher.check_needs_rehash(digest)
        except InvalidHashError:
            return True
