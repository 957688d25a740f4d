"""Tests for password tokens and stored password hashes."""

from __future__ import annotations

import hashlib

import pytest

from accumulo_handler.client.tokens import SALT_LENGTH, PasswordToken, check_password, hash_password


def test_hash_layout_is_salt_then_digest() -> None:
    salt = b"12345678"

    stored = hash_password(b"secret", salt)

    assert stored[:SALT_LENGTH] == salt
    assert stored[SALT_LENGTH:] == hashlib.sha256(b"secret" + salt).digest()


def test_check_password() -> None:
    stored = hash_password(b"secret")

    assert check_password(b"secret", stored)
    assert not check_password(b"Secret", stored)
    assert not check_password(b"secret", b"short")


def test_hash_password_rejects_bad_salt() -> None:
    with pytest.raises(ValueError):
        hash_password(b"secret", b"salt")


def test_password_token_equality_and_repr() -> None:
    assert PasswordToken("pw") == PasswordToken(b"pw")
    assert PasswordToken("pw") != PasswordToken("other")
    assert "pw" not in repr(PasswordToken("pw"))


def test_password_token_destroy() -> None:
    token = PasswordToken("pw")

    token.destroy()

    assert token.is_destroyed()
    with pytest.raises(ValueError):
        token.password


def test_password_token_hash_survives_destroy() -> None:
    token = PasswordToken("pw")
    before = hash(token)
    tokens = {token}

    token.destroy()

    assert hash(token) == before
    assert token in tokens
    assert hash(PasswordToken("pw")) == hash(PasswordToken(b"pw"))
