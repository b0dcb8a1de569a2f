"""
Unit tests for gym_backend/identity/passwords.py (Argon2 wrapper).
"""

import pytest

from gym_backend.identity.passwords import PasswordHasher

pytestmark = pytest.mark.unit


def test_hash_is_salted_and_both_digests_verify(hasher):
    first = hasher.hash("s3cret-Pass")
    second = hasher.hash("s3cret-Pass")

    assert first != second
    assert hasher.verify("s3cret-Pass", first)
    assert hasher.verify("s3cret-Pass", second)


def test_digest_never_contains_plaintext(hasher):
    assert "s3cret-Pass" not in hasher.hash("s3cret-Pass")


def test_wrong_password_does_not_verify(hasher):
    digest = hasher.hash("right")
    assert hasher.verify("wrong", digest) is False


@pytest.mark.parametrize("digest", ["", None, "not-a-hash", "$argon2id$garbage"])
def test_malformed_digest_returns_false(hasher, digest):
    assert hasher.verify("anything", digest) is False


def test_needs_rehash_detects_changed_parameters(hasher):
    stronger = PasswordHasher(time_cost=2, memory_cost=16, parallelism=1)
    old_digest = hasher.hash("pw")

    assert stronger.needs_rehash(old_digest) is True
    assert hasher.needs_rehash(old_digest) is False


def test_needs_rehash_on_malformed_digest(hasher):
    assert hasher.needs_rehash("plaintext-from-legacy-import") is True
