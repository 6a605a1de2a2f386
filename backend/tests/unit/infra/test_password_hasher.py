"""Unit tests for WerkzeugPasswordHasher."""

from __future__ import annotations

import pytest
from tokenauth.infra.security.werkzeug_password_hasher import (
    WerkzeugPasswordHasher,
    is_password_hash,
)
from tokenauth.services._shared.errors import ValidationError


@pytest.fixture
def hasher():
    return WerkzeugPasswordHasher("pbkdf2:sha256:1000")


def test_hash_and_verify(hasher):
    hashed = hasher.hash("s3cret")

    assert hashed != "s3cret"
    assert hasher.matches_format(hashed)
    assert hasher.verify("s3cret", hashed) is True
    assert hasher.verify("wrong", hashed) is False


def test_missing_hash_never_matches(hasher):
    assert hasher.verify("anything", None) is False
    assert hasher.verify("dummy-password", None) is False


def test_empty_password_is_refused(hasher):
    with pytest.raises(ValidationError):
        hasher.hash("")


def test_scrypt_hashes_match_format():
    assert is_password_hash(WerkzeugPasswordHasher("scrypt").hash("pw"))


@pytest.mark.parametrize(
    "value",
    ["", "plain", "$2b$10$abcdefghijklmnopqrstuvwxyz", "md5$salt$abc", None, 42],
)
def test_is_password_hash_rejects(value):
    assert is_password_hash(value) is False
