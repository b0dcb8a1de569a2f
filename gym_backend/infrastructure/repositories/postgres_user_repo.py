"""
Name: PostgreSQL User Repository

Responsibilities:
  - Load, create and update users keyed by username
  - Serialize read-modify-write per username with SELECT ... FOR UPDATE
  - Map database rows into User records

Collaborators:
  - infrastructure.db.pool: shared psycopg_pool ConnectionPool
  - domain.entities.User

Notes:
  - update() inside lock_for_update() reuses the locking transaction's
    connection, so the row lock is held until the block exits
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

import psycopg
from psycopg_pool import ConnectionPool

from ...domain.entities import User
from ...exceptions import DatabaseError, UsernameTakenError
from ...logger import logger

_COLUMNS = (
    "username, password_hash, first_name, last_name, is_active, "
    "failed_login_attempts, lock_until, created_at"
)


def _row_to_user(row) -> User:
    return User(
        username=row[0],
        password_hash=row[1],
        first_name=row[2],
        last_name=row[3],
        is_active=row[4],
        failed_login_attempts=row[5],
        lock_until=row[6],
        created_at=row[7],
    )


class PostgresUserRepository:
    """R: PostgreSQL implementation of UserRepository."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool
        self._tx_conn: ContextVar[Optional[psycopg.Connection]] = ContextVar(
            f"user_repo_tx_{id(self)}", default=None
        )

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool
        from ..db.pool import get_pool

        return get_pool()

    @contextmanager
    def _connection(self) -> Iterator[psycopg.Connection]:
        conn = self._tx_conn.get()
        if conn is not None:
            yield conn
            return
        with self._get_pool().connection() as conn:
            yield conn

    def find_by_username(self, username: str) -> Optional[User]:
        """R: Fetch user by username."""
        try:
            with self._connection() as conn:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM users WHERE username = %s",
                    (username,),
                ).fetchone()
        except psycopg.Error as e:
            logger.error(f"PostgresUserRepository: Find by username failed: {e}")
            raise DatabaseError(f"User lookup failed: {e}", original_error=e) from e

        if not row:
            return None
        return _row_to_user(row)

    def create(self, user: User) -> User:
        """R: Insert a new user; a duplicate username raises UsernameTakenError."""
        try:
            with self._connection() as conn:
                row = conn.execute(
                    f"""
                    INSERT INTO users (
                        username, password_hash, first_name, last_name,
                        is_active, failed_login_attempts, lock_until
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (username) DO NOTHING
                    RETURNING {_COLUMNS}
                    """,
                    (
                        user.username,
                        user.password_hash,
                        user.first_name,
                        user.last_name,
                        user.is_active,
                        user.failed_login_attempts,
                        user.lock_until,
                    ),
                ).fetchone()
        except psycopg.Error as e:
            logger.error(f"PostgresUserRepository: Create user failed: {e}")
            raise DatabaseError(f"User creation failed: {e}", original_error=e) from e

        if not row:
            raise UsernameTakenError(user.username)
        return _row_to_user(row)

    def update(self, user: User) -> None:
        """R: Overwrite mutable fields of an existing user."""
        try:
            with self._connection() as conn:
                conn.execute(
                    """
                    UPDATE users
                    SET password_hash = %s,
                        first_name = %s,
                        last_name = %s,
                        is_active = %s,
                        failed_login_attempts = %s,
                        lock_until = %s
                    WHERE username = %s
                    """,
                    (
                        user.password_hash,
                        user.first_name,
                        user.last_name,
                        user.is_active,
                        user.failed_login_attempts,
                        user.lock_until,
                        user.username,
                    ),
                )
        except psycopg.Error as e:
            logger.error(f"PostgresUserRepository: Update user failed: {e}")
            raise DatabaseError(f"User update failed: {e}", original_error=e) from e

    @contextmanager
    def lock_for_update(self, username: str) -> Iterator[Optional[User]]:
        """R: Row-lock the user for the duration of the block."""
        try:
            with self._get_pool().connection() as conn:
                with conn.transaction():
                    row = conn.execute(
                        f"SELECT {_COLUMNS} FROM users WHERE username = %s FOR UPDATE",
                        (username,),
                    ).fetchone()
                    token = self._tx_conn.set(conn)
                    try:
                        yield _row_to_user(row) if row else None
                    finally:
                        self._tx_conn.reset(token)
        except psycopg.Error as e:
            logger.error(f"PostgresUserRepository: Locked update failed: {e}")
            raise DatabaseError(f"User update failed: {e}", original_error=e) from e

    def ping(self) -> bool:
        """
        R: Verify database connectivity via pool.

        Returns:
            True if a trivial query succeeds.
        """
        try:
            with self._get_pool().connection() as conn:
                conn.execute("SELECT 1")
            return True
        except psycopg.Error as e:
            logger.warning(f"PostgresUserRepository: ping failed: {e}")
            raise DatabaseError(f"Ping failed: {e}", original_error=e) from e
