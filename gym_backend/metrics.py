"""
Name: Prometheus Metrics

Responsibilities:
  - Define and expose Prometheus metrics
  - Record HTTP request latency and count
  - Provide the account-security metrics sink

Collaborators:
  - middleware.py: Records request metrics
  - identity.account_security: Receives a PrometheusSecurityMetrics sink
  - main.py: /metrics endpoint

Constraints:
  - Low cardinality labels only (endpoint, method, status, outcome; never username)

Notes:
  - Request metrics live on the module registry
  - Security metrics bind to an explicit registry passed at construction
"""

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

# R: Request counter with endpoint and status labels
_requests_total = Counter(
    "gym_requests_total",
    "Total HTTP requests",
    ["endpoint", "method", "status"],
    registry=_registry,
)

# R: Request latency histogram (seconds); argon2 puts logins in the 50-500ms range
_request_latency = Histogram(
    "gym_request_latency_seconds",
    "HTTP request latency in seconds",
    ["endpoint", "method"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=_registry,
)


def get_registry() -> CollectorRegistry:
    return _registry


class PrometheusSecurityMetrics:
    """R: SecurityMetrics sink backed by prometheus_client counters."""

    def __init__(self, registry: CollectorRegistry):
        self._registrations = Counter(
            "gym_user_registrations",
            "Total number of user registrations",
            registry=registry,
        )
        self._logins = Counter(
            "gym_login_attempts",
            "Authentication attempts by outcome",
            ["outcome"],
            registry=registry,
        )
        self._lockouts = Counter(
            "gym_account_lockouts",
            "Accounts locked after repeated failed logins",
            registry=registry,
        )

    def record_registration(self) -> None:
        self._registrations.inc()

    def record_login(self, outcome: str) -> None:
        self._logins.labels(outcome=outcome).inc()

    def record_lockout(self) -> None:
        self._lockouts.inc()


def record_request_metrics(
    endpoint: str,
    method: str,
    status_code: int,
    latency_seconds: float,
) -> None:
    """
    R: Record HTTP request metrics.

    Args:
        endpoint: Request path (e.g., "/api/v1/auth/login")
        method: HTTP method (e.g., "POST")
        status_code: Response status code
        latency_seconds: Request duration in seconds
    """
    normalized = _normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=normalized,
        method=method,
        status=_status_bucket(status_code),
    ).inc()
    _request_latency.labels(endpoint=normalized, method=method).observe(
        latency_seconds
    )


def _normalize_endpoint(path: str) -> str:
    """
    R: Normalize endpoint path to prevent high cardinality.

    Replaces UUIDs and numeric IDs with placeholders.
    """
    path = re.sub(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "{id}",
        path,
        flags=re.IGNORECASE,
    )
    path = re.sub(r"/\d+", "/{id}", path)
    return path


def _status_bucket(code: int) -> str:
    """R: Bucket status code (2xx, 4xx, 5xx)."""
    if 200 <= code < 300:
        return "2xx"
    elif 400 <= code < 500:
        return "4xx"
    elif 500 <= code < 600:
        return "5xx"
    return "other"


def get_metrics_response() -> tuple[bytes, str]:
    """
    R: Generate Prometheus metrics response.

    Returns:
        Tuple of (body_bytes, content_type)
    """
    return generate_latest(_registry), CONTENT_TYPE_LATEST
