"""
User store implementations.

- InMemoryUserRepository: tests and local development (data lost on restart)
- PostgresUserRepository: production store backed by psycopg_pool
"""

from .in_memory_user_repo import InMemoryUserRepository
from .postgres_user_repo import PostgresUserRepository

__all__ = ["InMemoryUserRepository", "PostgresUserRepository"]
