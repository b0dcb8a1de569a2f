"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (no .env, in-memory store, test signing key)
  - Provide fast identity collaborators (cheap Argon2, fake clock)
  - Provide an isolated Prometheus registry per test

Collaborators:
  - pytest: Test framework
  - gym_backend.identity: services under test
  - gym_backend.infrastructure.repositories: in-memory user store

Notes:
  - Fixtures are auto-discovered by pytest
  - Use @pytest.fixture(scope="function") for per-test isolation
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-0123456789-abcdefghijklmnop")
if os.getenv("RUN_INTEGRATION") != "1":
    os.environ["DATABASE_URL"] = ""

from prometheus_client import CollectorRegistry  # noqa: E402

from gym_backend import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from gym_backend.identity.account_security import AccountSecurityService  # noqa: E402
from gym_backend.identity.credentials import CredentialGenerator  # noqa: E402
from gym_backend.identity.passwords import PasswordHasher  # noqa: E402
from gym_backend.identity.tokens import TokenService, TokenSettings  # noqa: E402
from gym_backend.infrastructure.repositories import InMemoryUserRepository  # noqa: E402
from gym_backend.metrics import PrometheusSecurityMetrics  # noqa: E402

TEST_SECRET = "unit-test-signing-key-0123456789abcdef"


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (require PostgreSQL)"
    )


class FakeClock:
    """R: Manually advanced UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ============================================================================
# Identity Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """R: Starts at the current second so HTTP Retry-After stays realistic."""
    return FakeClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture
def hasher() -> PasswordHasher:
    """R: Minimal Argon2 parameters; tests care about behavior, not cost."""
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def security_metrics(metrics_registry) -> PrometheusSecurityMetrics:
    return PrometheusSecurityMetrics(metrics_registry)


@pytest.fixture
def generator() -> CredentialGenerator:
    return CredentialGenerator()


@pytest.fixture
def account_service(
    user_repo, hasher, generator, security_metrics, clock
) -> AccountSecurityService:
    return AccountSecurityService(
        repository=user_repo,
        hasher=hasher,
        generator=generator,
        metrics=security_metrics,
        clock=clock,
    )


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TokenSettings(secret=TEST_SECRET, ttl=timedelta(minutes=30)))
