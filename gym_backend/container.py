"""
Name: Dependency Injection Container

Responsibilities:
  - Wire up dependencies for the application
  - Manage singleton instances of the user store and identity services
  - Enable dependency injection in FastAPI endpoints

Collaborators:
  - config.get_settings: thresholds, signing key, work factor, password policy
  - infrastructure.repositories: Postgres or in-memory user store
  - identity: hasher, generator, token service, account security engine

Constraints:
  - Manual DI (no container library)
  - Singletons via functools.lru_cache

Notes:
  - This is the composition root
  - Tests override these factories with app.dependency_overrides
"""

from datetime import timedelta
from functools import lru_cache

from .config import get_settings
from .domain.repositories import UserRepository
from .domain.services import SecurityMetrics
from .identity.account_security import AccountSecurityService
from .identity.credentials import CredentialGenerator, PasswordPolicy
from .identity.passwords import PasswordHasher
from .identity.tokens import TokenService, TokenSettings
from .infrastructure.repositories import (
    InMemoryUserRepository,
    PostgresUserRepository,
)
from .metrics import PrometheusSecurityMetrics, get_registry


@lru_cache
def get_user_repository() -> UserRepository:
    """
    R: Get singleton user store.

    Returns:
        PostgreSQL store when DATABASE_URL is set, otherwise in-memory
    """
    settings = get_settings()
    if not settings.database_url:
        return InMemoryUserRepository()
    return PostgresUserRepository()


@lru_cache
def get_password_hasher() -> PasswordHasher:
    settings = get_settings()
    return PasswordHasher(
        time_cost=settings.password_hash_time_cost,
        memory_cost=settings.password_hash_memory_cost,
        parallelism=settings.password_hash_parallelism,
    )


@lru_cache
def get_credential_generator() -> CredentialGenerator:
    settings = get_settings()
    return CredentialGenerator(
        PasswordPolicy(
            length=settings.password_length,
            require_lowercase=settings.password_require_lowercase,
            require_uppercase=settings.password_require_uppercase,
            require_digits=settings.password_require_digits,
            require_symbols=settings.password_require_symbols,
        )
    )


@lru_cache
def get_security_metrics() -> SecurityMetrics:
    return PrometheusSecurityMetrics(get_registry())


@lru_cache
def get_token_service() -> TokenService:
    """R: Token service bound to the signing key read once at startup."""
    settings = get_settings()
    return TokenService(
        TokenSettings(
            secret=settings.jwt_secret,
            ttl=timedelta(minutes=settings.jwt_access_ttl_minutes),
            algorithm=settings.jwt_algorithm,
        )
    )


@lru_cache
def get_account_security_service() -> AccountSecurityService:
    settings = get_settings()
    return AccountSecurityService(
        repository=get_user_repository(),
        hasher=get_password_hasher(),
        generator=get_credential_generator(),
        metrics=get_security_metrics(),
        max_failed_attempts=settings.auth_max_failed_attempts,
        lock_duration=timedelta(seconds=settings.auth_lock_duration_seconds),
    )
