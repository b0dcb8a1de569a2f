"""
Unit tests for the PostgreSQL pool lifecycle and session setup.

Tests:
  - Session SET statements (UTC, statement and lock timeouts)
  - Configure hook executes them and commits
  - Singleton init/close with ConnectionPool patched out
"""

from unittest.mock import Mock, patch

import pytest

from gym_backend.infrastructure.db import pool

pytestmark = pytest.mark.unit


class TestSessionStatements:
    def test_utc_and_both_timeouts(self):
        assert pool.session_statements(30000, 5000) == [
            "SET TIME ZONE 'UTC'",
            "SET statement_timeout = 30000",
            "SET lock_timeout = 5000",
        ]

    def test_zero_timeouts_keep_server_defaults(self):
        assert pool.session_statements(0, 0) == ["SET TIME ZONE 'UTC'"]

    def test_configure_hook_runs_statements_then_commits(self):
        conn = Mock()

        pool._session_configurer(pool.session_statements(100, 50))(conn)

        executed = [call.args[0] for call in conn.execute.call_args_list]
        assert executed == [
            "SET TIME ZONE 'UTC'",
            "SET statement_timeout = 100",
            "SET lock_timeout = 50",
        ]
        conn.commit.assert_called_once()


class TestPoolLifecycle:
    @pytest.fixture(autouse=True)
    def _reset(self):
        pool.close_pool()
        yield
        pool.close_pool()

    def test_get_before_init_raises(self):
        with pytest.raises(RuntimeError):
            pool.get_pool()

    def test_init_get_close(self):
        with patch.object(pool, "ConnectionPool") as pool_cls:
            created = pool.init_pool(
                "postgresql://x", 1, 2, statement_timeout_ms=10, lock_timeout_ms=20
            )

            assert pool.get_pool() is created
            kwargs = pool_cls.call_args.kwargs
            assert kwargs["min_size"] == 1
            assert kwargs["max_size"] == 2
            assert callable(kwargs["configure"])

            pool.close_pool()

        created.close.assert_called_once()
        with pytest.raises(RuntimeError):
            pool.get_pool()

    def test_double_init_raises(self):
        with patch.object(pool, "ConnectionPool"):
            pool.init_pool("postgresql://x", 1, 2)
            with pytest.raises(RuntimeError):
                pool.init_pool("postgresql://x", 1, 2)
