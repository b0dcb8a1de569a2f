"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide the account-security defaults (3 attempts, 5 minute lock)

Collaborators:
  - container.py: builds hasher, generator, token service and engine from settings
  - main.py: reads settings for CORS and the connection pool

Constraints:
  - No business logic, pure configuration
  - The signing key is read once; services receive it at construction

Notes:
  - Singleton via lru_cache
  - APP_ENV=production refuses the development signing key
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "dev-secret-change-me"
MIN_PRODUCTION_SECRET_CHARS = 32


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: Deployment environment (development, test, production)
        database_url: PostgreSQL connection string (empty = in-memory store)
        allowed_origins: Comma-separated CORS origins
        cors_allow_credentials: Allow cookies cross-origin (default: False)
        jwt_secret: Secret for signing access tokens
        jwt_algorithm: HMAC algorithm for access tokens (default: HS256)
        jwt_access_ttl_minutes: Access token TTL in minutes
        auth_max_failed_attempts: Failures before the account locks (default: 3)
        auth_lock_duration_seconds: Lock duration in seconds (default: 300)
        password_length: Length of generated passwords (default: 10)
        password_require_*: Character classes generated passwords must contain
        password_hash_time_cost: Argon2 iterations
        password_hash_memory_cost: Argon2 memory in KiB
        password_hash_parallelism: Argon2 lanes
        db_statement_timeout_ms: Per-statement timeout on pooled connections
        db_lock_timeout_ms: Max wait for a user row lock (0 = server default)
    """

    app_env: str = "development"

    # Persistence
    database_url: str = ""
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000  # 30 seconds
    db_lock_timeout_ms: int = 5000

    # CORS
    allowed_origins: str = "http://localhost:3000"
    cors_allow_credentials: bool = False

    # Security - JWT
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_access_ttl_minutes: int = 30

    # Security - Lockout
    auth_max_failed_attempts: int = 3
    auth_lock_duration_seconds: int = 5 * 60

    # Security - Generated passwords
    password_length: int = 10
    password_require_lowercase: bool = True
    password_require_uppercase: bool = True
    password_require_digits: bool = True
    password_require_symbols: bool = False

    # Security - Argon2 work factor
    password_hash_time_cost: int = 3
    password_hash_memory_cost: int = 65536
    password_hash_parallelism: int = 4

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator(
        "jwt_access_ttl_minutes",
        "auth_max_failed_attempts",
        "auth_lock_duration_seconds",
        "password_length",
    )
    @classmethod
    def must_be_positive(cls, v: int, info) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be greater than 0")
        return v

    @field_validator("jwt_algorithm")
    @classmethod
    def algorithm_must_be_hmac(cls, v: str) -> str:
        if v not in {"HS256", "HS384", "HS512"}:
            raise ValueError("jwt_algorithm must be one of HS256, HS384, HS512")
        return v

    @model_validator(mode="after")
    def validate_production_secret(self):
        if self.is_production() and (
            self.jwt_secret == DEV_JWT_SECRET
            or len(self.jwt_secret) < MIN_PRODUCTION_SECRET_CHARS
        ):
            raise ValueError(
                "JWT_SECRET must be set to at least "
                f"{MIN_PRODUCTION_SECRET_CHARS} characters in production"
            )
        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() in {"prod", "production"}

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
