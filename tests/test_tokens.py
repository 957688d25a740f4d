"""Tests for token providers and the late-bound Kerberos lookup."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from accumulo_handler.client.tokens import AuthenticationToken, PasswordToken
from accumulo_handler.config import Configuration, ConfigurationError
from accumulo_handler.parameters import ConnectionParameters
from accumulo_handler.tokens import (
    KERBEROS_UNAVAILABLE,
    TOKEN_PROVIDERS,
    AuthMode,
    KerberosTokenProvider,
    PasswordTokenProvider,
    TokenProvider,
    locate_kerberos_token_class,
    provider_for,
)


def test_auth_mode_from_flag() -> None:
    assert AuthMode.from_flag(True) is AuthMode.KERBEROS
    assert AuthMode.from_flag(False) is AuthMode.PASSWORD


def test_registry_covers_every_mode() -> None:
    assert set(TOKEN_PROVIDERS) == set(AuthMode)
    for mode in AuthMode:
        provider = provider_for(mode)
        assert isinstance(provider, TokenProvider)
        assert provider.mode is mode


def test_provider_for_returns_fresh_instances() -> None:
    assert provider_for(AuthMode.KERBEROS) is not provider_for(AuthMode.KERBEROS)


def test_password_provider_wraps_configured_password() -> None:
    params = ConnectionParameters(Configuration({ConnectionParameters.USER_PASS: "secret"}))

    token = PasswordTokenProvider().token_for(params)

    assert token == PasswordToken("secret")


def test_password_provider_requires_password() -> None:
    params = ConnectionParameters(Configuration())

    with pytest.raises(ConfigurationError, match="accumulo.user.pass"):
        PasswordTokenProvider().token_for(params)


def test_locate_resolves_named_class() -> None:
    clz = locate_kerberos_token_class("accumulo_handler.client.tokens:PasswordToken")

    assert clz is PasswordToken


@pytest.mark.parametrize(
    "path",
    [
        "accumulo_handler.client.no_such_module:KerberosToken",
        "accumulo_handler.client.tokens:KerberosToken",
    ],
)
def test_locate_reports_missing_type(path: str) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        locate_kerberos_token_class(path)

    assert str(excinfo.value) == KERBEROS_UNAVAILABLE


def test_locate_rejects_non_token_types() -> None:
    with pytest.raises(ConfigurationError, match="not an AuthenticationToken"):
        locate_kerberos_token_class("accumulo_handler.client.tokens:hash_password")


def test_locate_default_fails_cleanly_without_gssapi(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "gssapi", None)
    monkeypatch.delitem(sys.modules, "accumulo_handler.client.kerberos", raising=False)

    with pytest.raises(ConfigurationError, match="kerberos"):
        locate_kerberos_token_class()


def test_kerberos_provider_locates_class_once(fake_token_class: type) -> None:
    calls: list[int] = []

    def _locate() -> type[AuthenticationToken]:
        calls.append(1)
        return fake_token_class

    provider = KerberosTokenProvider(locate=_locate)

    provider.principal_token("hive")
    provider.principal_token("hive")

    assert provider.token_class is fake_token_class
    assert calls == [1]


def test_kerberos_provider_wraps_construction_failures(fake_token_class: type) -> None:
    provider = KerberosTokenProvider(fake_token_class)

    with pytest.raises(ConfigurationError, match="Failed to instantiate KerberosToken") as excinfo:
        provider.principal_token(None)

    assert isinstance(excinfo.value.__cause__, TypeError)


def test_kerberos_provider_checks_keytab_before_locating(tmp_path: Path) -> None:
    def _locate() -> type[AuthenticationToken]:
        raise AssertionError("token class should not be located")

    provider = KerberosTokenProvider(locate=_locate)

    with pytest.raises(ConfigurationError, match="Keytab must be a readable file") as excinfo:
        provider.keytab_token("hive", tmp_path / "absent.keytab")

    assert excinfo.value.key == ConnectionParameters.USER_KEYTAB


def test_kerberos_provider_logs_principal(
    tmp_path: Path, fake_token_class: type, caplog: pytest.LogCaptureFixture
) -> None:
    keytab = tmp_path / "hive.keytab"
    keytab.write_bytes(b"\x05\x02")
    provider = KerberosTokenProvider(fake_token_class)

    with caplog.at_level(logging.DEBUG, logger="accumulo_handler.tokens"):
        provider.keytab_token("hive", keytab)

    record = caplog.records[-1]
    assert record.principal == "hive"
    assert record.keytab == str(keytab)
