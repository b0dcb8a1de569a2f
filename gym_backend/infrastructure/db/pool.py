"""
Name: PostgreSQL Connection Pool

Responsibilities:
  - Manage connection pool lifecycle (init, get, close)
  - Pin every session to UTC so lock_until round-trips unchanged
  - Bound statement time and row-lock waits on the users table

Collaborators:
  - psycopg_pool: Connection pooling
  - postgres_user_repo: SELECT ... FOR UPDATE under lock_for_update()
  - main.py: init on startup, close on shutdown

Constraints:
  - Singleton pattern (one pool per process)
  - Must init before use, close on shutdown
"""

import threading
from typing import Optional

from psycopg_pool import ConnectionPool

from ...logger import logger

_pool: Optional[ConnectionPool] = None
_pool_lock = threading.Lock()


def session_statements(statement_timeout_ms: int, lock_timeout_ms: int) -> list[str]:
    """
    R: SET statements applied to each new pooled connection.

    A zero timeout is left at the server default.
    """
    statements = ["SET TIME ZONE 'UTC'"]
    if statement_timeout_ms > 0:
        statements.append(f"SET statement_timeout = {int(statement_timeout_ms)}")
    if lock_timeout_ms > 0:
        # A login stuck behind another login's row lock fails fast (503)
        statements.append(f"SET lock_timeout = {int(lock_timeout_ms)}")
    return statements


def _session_configurer(statements: list[str]):
    def configure(conn) -> None:
        for statement in statements:
            conn.execute(statement)
        conn.commit()

    return configure


def init_pool(
    database_url: str,
    min_size: int,
    max_size: int,
    statement_timeout_ms: int = 0,
    lock_timeout_ms: int = 0,
) -> ConnectionPool:
    """
    R: Initialize the connection pool.

    Raises:
        RuntimeError: If pool already initialized
    """
    global _pool

    with _pool_lock:
        if _pool is not None:
            raise RuntimeError("Connection pool already initialized")

        logger.info(
            "Initializing user store pool",
            extra={
                "min_size": min_size,
                "max_size": max_size,
                "statement_timeout_ms": statement_timeout_ms,
                "lock_timeout_ms": lock_timeout_ms,
            },
        )

        _pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            configure=_session_configurer(
                session_statements(statement_timeout_ms, lock_timeout_ms)
            ),
            name="gym-users",
            open=True,
        )
        return _pool


def get_pool() -> ConnectionPool:
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    return _pool


def close_pool() -> None:
    """R: Close the connection pool. Safe to call even if not initialized."""
    global _pool

    with _pool_lock:
        if _pool is not None:
            logger.info("Closing user store pool")
            _pool.close()
            _pool = None
