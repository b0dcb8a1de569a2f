"""
Unit tests for logging and metrics.

Tests:
  - JSONFormatter output shape, context enrichment, secret filtering
  - PrometheusSecurityMetrics counters on an isolated registry
  - Endpoint normalization and status bucketing
"""

import json
import logging

import pytest

from gym_backend.context import (
    bind_principal,
    bind_request,
    get_context_dict,
    principal_var,
    reset_context,
)
from gym_backend.logger import JSONFormatter
from gym_backend.metrics import (
    _normalize_endpoint,
    _status_bucket,
    get_metrics_response,
    record_request_metrics,
)

pytestmark = pytest.mark.unit


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="gym-backend",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="User authenticated",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_shape(self):
        payload = json.loads(JSONFormatter().format(_record(username="jdoe")))

        assert payload["level"] == "INFO"
        assert payload["message"] == "User authenticated"
        assert payload["username"] == "jdoe"

    def test_drops_sensitive_extras(self):
        payload = json.loads(
            JSONFormatter().format(
                _record(password="hunter2", access_token="abc", jwt_secret="k")
            )
        )

        assert "password" not in payload
        assert "access_token" not in payload
        assert "jwt_secret" not in payload

    def test_includes_request_context(self):
        tokens = bind_request("req-123", "POST", "/api/v1/auth/login")
        try:
            payload = json.loads(JSONFormatter().format(_record()))
        finally:
            reset_context(tokens)

        assert payload["request_id"] == "req-123"
        assert payload["path"] == "/api/v1/auth/login"
        assert "principal" not in payload
        assert get_context_dict() == {}

    def test_includes_authenticated_principal(self):
        tokens = bind_request("req-9", "PUT", "/api/v1/auth/change-password")
        try:
            bind_principal("")
            payload = json.loads(JSONFormatter().format(_record()))
        finally:
            reset_context(tokens)

        # an empty handle is still a principal
        assert payload["principal"] == ""
        assert principal_var.get() is None

    def test_serializes_datetimes(self):
        from datetime import datetime, timezone

        lock_until = datetime(2026, 1, 1, tzinfo=timezone.utc)
        payload = json.loads(JSONFormatter().format(_record(lock_until=lock_until)))

        assert payload["lock_until"].startswith("2026-01-01")


class TestSecurityMetrics:
    def test_counters(self, security_metrics, metrics_registry):
        security_metrics.record_registration()
        security_metrics.record_login("success")
        security_metrics.record_login("invalid")
        security_metrics.record_login("invalid")
        security_metrics.record_lockout()

        get = metrics_registry.get_sample_value
        assert get("gym_user_registrations_total") == 1
        assert get("gym_login_attempts_total", {"outcome": "success"}) == 1
        assert get("gym_login_attempts_total", {"outcome": "invalid"}) == 2
        assert get("gym_account_lockouts_total") == 1


class TestRequestMetrics:
    def test_normalize_endpoint(self):
        assert _normalize_endpoint("/api/v1/items/42") == "/api/v1/items/{id}"
        assert (
            _normalize_endpoint("/x/123e4567-e89b-12d3-a456-426614174000")
            == "/x/{id}"
        )
        assert _normalize_endpoint("/api/v1/auth/login") == "/api/v1/auth/login"

    @pytest.mark.parametrize(
        "code,bucket", [(200, "2xx"), (201, "2xx"), (423, "4xx"), (503, "5xx"), (301, "other")]
    )
    def test_status_bucket(self, code, bucket):
        assert _status_bucket(code) == bucket

    def test_recorded_requests_are_exposed(self):
        record_request_metrics("/api/v1/auth/login", "POST", 401, 0.12)

        body, content_type = get_metrics_response()

        assert content_type.startswith("text/plain")
        assert b"gym_requests_total" in body
        assert b'endpoint="/api/v1/auth/login"' in body
