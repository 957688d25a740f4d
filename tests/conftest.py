"""Shared fixtures for the resolver tests."""

from __future__ import annotations

from typing import Iterator

import pytest

from accumulo_handler.client import reset_mock_instances
from accumulo_handler.client.tokens import AuthenticationToken


@pytest.fixture(autouse=True)
def fresh_mock_instances() -> Iterator[None]:
    """Mock instances share state by name; start every test clean."""

    reset_mock_instances()
    yield
    reset_mock_instances()


class FakeKerberosToken(AuthenticationToken):
    """Stand-in for the gssapi-backed token that records how it was built."""

    def __init__(self, principal: str, keytab: object = None, replace_current_user: bool = False) -> None:
        if principal is None:
            raise TypeError("principal is required")
        self.principal = principal
        self.keytab = keytab
        self.replace_current_user = replace_current_user


@pytest.fixture
def fake_token_class() -> type[FakeKerberosToken]:
    return FakeKerberosToken
