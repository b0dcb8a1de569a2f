"""
Name: Domain Repository Interfaces (Protocols)

Responsibilities:
  - Define the user store contract the identity services depend on
  - Keep the engine independent from PostgreSQL or in-memory storage

Collaborators:
  - domain.entities: User
  - infrastructure.repositories: postgres and in-memory implementations

Constraints:
  - Pure interfaces only: no side effects, no SQL
  - Single-record operations are atomic
  - Read-modify-write on one username must go through lock_for_update
"""

from typing import ContextManager, Optional, Protocol

from .entities import User


class UserRepository(Protocol):
    """
    R: Interface for user persistence keyed by username.

    Implementations must provide:
      - Lookup by username
      - Create with username uniqueness
      - Whole-record update
      - An exclusive per-username lock for read-modify-write
      - A connectivity ping for health checks
    """

    def find_by_username(self, username: str) -> Optional[User]:
        """R: Return the user or None."""
        ...

    def create(self, user: User) -> User:
        """
        R: Persist a new user.

        Raises:
            UsernameTakenError: If the username already exists
        """
        ...

    def update(self, user: User) -> None:
        """R: Overwrite the stored record for user.username."""
        ...

    def lock_for_update(self, username: str) -> ContextManager[Optional[User]]:
        """
        R: Hold an exclusive lock on one username.

        Yields the current record (or None). Calls to update() made inside
        the block are applied before the lock is released; a concurrent
        caller for the same username blocks until then.
        """
        ...

    def ping(self) -> bool:
        """R: Verify the backing store is reachable."""
        ...
