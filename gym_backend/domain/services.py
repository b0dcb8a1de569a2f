"""
Name: Domain Service Interfaces

Responsibilities:
  - Define the metrics sink injected into the account security engine

Collaborators:
  - metrics.PrometheusSecurityMetrics: production implementation
  - identity.account_security: records registrations, logins, lockouts
"""

from typing import Protocol


class SecurityMetrics(Protocol):
    """R: Counters for account-security events."""

    def record_registration(self) -> None:
        ...

    def record_login(self, outcome: str) -> None:
        """R: outcome is one of success, invalid, locked, unknown, inactive."""
        ...

    def record_lockout(self) -> None:
        ...


class NullSecurityMetrics:
    """R: Metrics sink that discards everything."""

    def record_registration(self) -> None:
        return None

    def record_login(self, outcome: str) -> None:
        return None

    def record_lockout(self) -> None:
        return None
