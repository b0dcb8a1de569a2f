"""
In-Memory User Repository for testing and development.

NOT FOR PRODUCTION USE - data is lost on restart.
"""

from __future__ import annotations

import threading
import zlib
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional

from ...domain.entities import User
from ...exceptions import UsernameTakenError

_LOCK_STRIPES = 64


class InMemoryUserRepository:
    """
    In-memory implementation of UserRepository.

    Records are copied on the way in and out so callers never share state
    with the store. Per-username serialization uses a fixed set of striped
    re-entrant locks, so unknown usernames do not grow the lock table.
    """

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._guard = threading.Lock()
        self._stripes = [threading.RLock() for _ in range(_LOCK_STRIPES)]

    def _lock_for(self, username: str) -> threading.RLock:
        return self._stripes[zlib.crc32(username.encode("utf-8")) % _LOCK_STRIPES]

    def find_by_username(self, username: str) -> Optional[User]:
        with self._guard:
            user = self._users.get(username)
        return replace(user) if user is not None else None

    def create(self, user: User) -> User:
        with self._guard:
            if user.username in self._users:
                raise UsernameTakenError(user.username)
            stored = replace(
                user, created_at=user.created_at or datetime.now(timezone.utc)
            )
            self._users[user.username] = stored
        return replace(stored)

    def update(self, user: User) -> None:
        with self._lock_for(user.username):
            with self._guard:
                self._users[user.username] = replace(user)

    @contextmanager
    def lock_for_update(self, username: str) -> Iterator[Optional[User]]:
        with self._lock_for(username):
            yield self.find_by_username(username)

    def count(self) -> int:
        with self._guard:
            return len(self._users)

    def ping(self) -> bool:
        return True
