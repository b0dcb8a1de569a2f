"""
Name: Credential Generator

Responsibilities:
  - Build a deterministic base username from first/last name
  - Resolve collisions with a numeric suffix (base, base0, base1, ...)
  - Generate random passwords satisfying a PasswordPolicy

Collaborators:
  - identity.account_security: supplies the is_taken oracle and persists results

Constraints:
  - Pure computation: never writes to the user store
  - Randomness comes from secrets.SystemRandom

Notes:
  - A name that normalizes to nothing yields the base "" (logged, not an error)
"""

import secrets
import string
import unicodedata
from dataclasses import dataclass
from typing import Callable

from ..logger import logger

DEFAULT_SYMBOLS = "!@#$%^&*-_"

_HANDLE_CHARS = frozenset(string.ascii_lowercase + string.digits)


@dataclass(frozen=True)
class PasswordPolicy:
    """R: Minimum complexity for generated passwords."""

    length: int = 10
    require_lowercase: bool = True
    require_uppercase: bool = True
    require_digits: bool = True
    require_symbols: bool = False
    symbols: str = DEFAULT_SYMBOLS

    def __post_init__(self) -> None:
        classes = self.required_classes()
        if not classes:
            raise ValueError("Password policy must require at least one character class")
        if self.length < len(classes):
            raise ValueError(
                f"Password length {self.length} cannot fit {len(classes)} required character classes"
            )

    def required_classes(self) -> list[str]:
        classes = []
        if self.require_lowercase:
            classes.append(string.ascii_lowercase)
        if self.require_uppercase:
            classes.append(string.ascii_uppercase)
        if self.require_digits:
            classes.append(string.digits)
        if self.require_symbols:
            classes.append(self.symbols)
        return classes

    def is_satisfied_by(self, password: str) -> bool:
        if len(password) < self.length:
            return False
        return all(
            any(ch in alphabet for ch in password)
            for alphabet in self.required_classes()
        )


def normalize_name_part(value: str) -> str:
    """R: ASCII-fold, lowercase and keep only [a-z0-9]."""
    folded = unicodedata.normalize("NFKD", value or "")
    ascii_only = folded.encode("ascii", "ignore").decode("ascii")
    return "".join(ch for ch in ascii_only.lower() if ch in _HANDLE_CHARS)


def build_base_username(first_name: str, last_name: str) -> str:
    """
    R: Concatenate the normalized name parts.

    Returns "" when nothing survives normalization.
    """
    base = normalize_name_part(first_name) + normalize_name_part(last_name)
    if not base:
        logger.warning(
            "Username generation degenerate: empty base handle",
            extra={"first_name_len": len(first_name or ""), "last_name_len": len(last_name or "")},
        )
    return base


def resolve_unique_username(base: str, is_taken: Callable[[str], bool]) -> str:
    """
    R: Return the first free handle in base, base0, base1, ...
    """
    candidate = base
    suffix = 0
    while is_taken(candidate):
        candidate = f"{base}{suffix}"
        suffix += 1
    return candidate


class CredentialGenerator:
    """R: Produce unique usernames and random passwords."""

    def __init__(
        self,
        policy: PasswordPolicy | None = None,
        rng: secrets.SystemRandom | None = None,
    ):
        self.policy = policy or PasswordPolicy()
        self._rng = rng or secrets.SystemRandom()

    def generate_password(self) -> str:
        """R: One char from each required class, the rest from their union, shuffled."""
        classes = self.policy.required_classes()
        alphabet = "".join(classes)
        chars = [self._rng.choice(cls) for cls in classes]
        chars.extend(
            self._rng.choice(alphabet) for _ in range(self.policy.length - len(chars))
        )
        self._rng.shuffle(chars)
        return "".join(chars)

    def generate_username(
        self, first_name: str, last_name: str, is_taken: Callable[[str], bool]
    ) -> str:
        base = build_base_username(first_name, last_name)
        return resolve_unique_username(base, is_taken)

    def assign_credentials(
        self, first_name: str, last_name: str, is_taken: Callable[[str], bool]
    ) -> tuple[str, str]:
        """
        R: Return (username, plaintext_password).

        The caller hashes the password and persists the user.
        """
        username = self.generate_username(first_name, last_name, is_taken)
        return username, self.generate_password()
