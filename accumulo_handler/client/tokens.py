"""Authentication token primitives shared by instances and providers."""

from __future__ import annotations

import hashlib
import hmac
import os

SALT_LENGTH = 8


class AuthenticationToken:
    """Base type for credentials presented to an Accumulo instance."""

    def destroy(self) -> None:
        """Discard any secret material held by the token."""

    def is_destroyed(self) -> bool:
        return False


class PasswordToken(AuthenticationToken):
    """Shared-secret credential."""

    def __init__(self, password: str | bytes) -> None:
        if isinstance(password, str):
            password = password.encode("utf-8")
        self._password: bytes | None = bytes(password)
        self._hash = hash(self._password)

    @property
    def password(self) -> bytes:
        if self._password is None:
            raise ValueError("Token has been destroyed")
        return self._password

    def destroy(self) -> None:
        self._password = None

    def is_destroyed(self) -> bool:
        return self._password is None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PasswordToken):
            return NotImplemented
        return self._password == other._password

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        return "PasswordToken(<redacted>)"


def hash_password(password: bytes, salt: bytes | None = None) -> bytes:
    """Return ``salt + sha256(password + salt)`` as stored under a user node."""

    if salt is None:
        salt = os.urandom(SALT_LENGTH)
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"Salt must be {SALT_LENGTH} bytes")
    digest = hashlib.sha256(password + salt).digest()
    return salt + digest


def check_password(password: bytes, stored: bytes) -> bool:
    if len(stored) <= SALT_LENGTH:
        return False
    expected = hash_password(password, stored[:SALT_LENGTH])
    return hmac.compare_digest(expected, stored)


__all__ = [
    "AuthenticationToken",
    "PasswordToken",
    "SALT_LENGTH",
    "check_password",
    "hash_password",
]
