"""
Unit tests for gym_backend/identity/credentials.py.

Tests:
  - Base username normalization (ASCII fold, lowercase, [a-z0-9])
  - Collision sequence base, base0, base1, ...
  - Degenerate names fall back to an empty base
  - Generated passwords satisfy the policy
  - Invalid policies are rejected at construction
"""

import logging
import random
import string

import pytest

from gym_backend.identity.credentials import (
    CredentialGenerator,
    PasswordPolicy,
    build_base_username,
    normalize_name_part,
    resolve_unique_username,
)

pytestmark = pytest.mark.unit


def _taken(*handles):
    existing = set(handles)
    return lambda candidate: candidate in existing


class TestBaseUsername:
    def test_strips_punctuation_and_lowercases(self):
        assert build_base_username("J.", "Doe") == "jdoe"

    def test_ascii_folds_accents(self):
        assert build_base_username("José", "Núñez") == "josenunez"

    def test_keeps_digits_and_drops_spaces(self):
        assert build_base_username("Anna Maria", "Smith 2") == "annamariasmith2"

    def test_is_deterministic(self):
        assert build_base_username("Élodie", "O'Brien") == build_base_username(
            "Élodie", "O'Brien"
        )

    def test_normalize_handles_none(self):
        assert normalize_name_part(None) == ""

    def test_degenerate_name_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="gym-backend"):
            base = build_base_username("!!", "???")

        assert base == ""
        assert "degenerate" in caplog.text


class TestCollisionResolution:
    def test_free_base_is_used_as_is(self):
        assert resolve_unique_username("jdoe", _taken()) == "jdoe"

    def test_first_collision_appends_zero(self):
        assert resolve_unique_username("jdoe", _taken("jdoe")) == "jdoe0"

    def test_sequence_continues_past_taken_suffixes(self):
        taken = _taken("jdoe", "jdoe0", "jdoe1", "jdoe2")
        assert resolve_unique_username("jdoe", taken) == "jdoe3"

    def test_gap_in_sequence_is_filled(self):
        # jdoe1 is free even though jdoe2 is taken
        assert resolve_unique_username("jdoe", _taken("jdoe", "jdoe0", "jdoe2")) == "jdoe1"

    def test_empty_base_goes_through_same_sequence(self):
        assert resolve_unique_username("", _taken("", "0")) == "1"

    def test_never_returns_taken_handle(self):
        existing = {"amy"} | {f"amy{i}" for i in range(50)}
        result = resolve_unique_username("amy", lambda c: c in existing)
        assert result == "amy50"
        assert result not in existing


class TestPasswordPolicy:
    def test_default_policy(self):
        policy = PasswordPolicy()
        assert policy.length == 10
        assert len(policy.required_classes()) == 3

    def test_rejects_policy_without_classes(self):
        with pytest.raises(ValueError):
            PasswordPolicy(
                require_lowercase=False,
                require_uppercase=False,
                require_digits=False,
                require_symbols=False,
            )

    def test_rejects_length_shorter_than_required_classes(self):
        with pytest.raises(ValueError):
            PasswordPolicy(length=3, require_symbols=True)

    def test_is_satisfied_by(self):
        policy = PasswordPolicy(length=6)
        assert policy.is_satisfied_by("abC123")
        assert not policy.is_satisfied_by("abcdef")
        assert not policy.is_satisfied_by("aB1")


class TestCredentialGenerator:
    def test_passwords_satisfy_default_policy(self):
        generator = CredentialGenerator()
        for _ in range(50):
            password = generator.generate_password()
            assert len(password) == 10
            assert generator.policy.is_satisfied_by(password)

    def test_passwords_include_symbols_when_required(self):
        policy = PasswordPolicy(length=4, require_symbols=True)
        generator = CredentialGenerator(policy)
        for _ in range(50):
            password = generator.generate_password()
            assert len(password) == 4
            assert any(ch in policy.symbols for ch in password)

    def test_digits_only_policy(self):
        policy = PasswordPolicy(
            length=8,
            require_lowercase=False,
            require_uppercase=False,
            require_digits=True,
        )
        password = CredentialGenerator(policy).generate_password()
        assert set(password) <= set(string.digits)

    def test_injected_rng_is_used(self):
        first = CredentialGenerator(rng=random.Random(7)).generate_password()
        second = CredentialGenerator(rng=random.Random(7)).generate_password()
        assert first == second

    def test_assign_credentials_returns_free_username_and_password(self):
        generator = CredentialGenerator()
        username, password = generator.assign_credentials(
            "J.", "Doe", _taken("jdoe")
        )
        assert username == "jdoe0"
        assert generator.policy.is_satisfied_by(password)

    def test_assign_credentials_does_not_call_oracle_after_free_handle(self):
        calls = []

        def is_taken(candidate):
            calls.append(candidate)
            return False

        CredentialGenerator().assign_credentials("Ann", "Lee", is_taken)
        assert calls == ["annlee"]
