"""Resolve Accumulo connection settings from a generic configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable, Sequence

from . import config as keys
from .client.instance import Connector, Instance, MockInstance, ZooKeeperInstance
from .client.tokens import AuthenticationToken
from .config import Configuration, ConfigurationError
from .tokens import AuthMode, KerberosTokenProvider, TokenClass, TokenProvider, provider_for

LOG = logging.getLogger(__name__)

InstanceFactory = Callable[[str, str], Instance]


@dataclass(frozen=True, slots=True)
class RequiredField:
    """A configuration key that must be present when ``required_when`` holds."""

    key: str
    label: str
    read: Callable[["ConnectionParameters"], str | None]
    required_when: Callable[["ConnectionParameters"], bool] = lambda _: True

    def missing(self, params: "ConnectionParameters") -> bool:
        return self.required_when(params) and self.read(params) is None

    def error(self) -> ConfigurationError:
        return ConfigurationError(
            f"{self.label} must be provided in configuration using {self.key}",
            key=self.key,
        )


INSTANCE_FIELDS: tuple[RequiredField, ...] = (
    RequiredField(keys.INSTANCE_NAME, "Accumulo instance name", lambda p: p.instance_name),
    RequiredField(
        keys.ZOOKEEPERS,
        "ZooKeeper quorum string",
        lambda p: p.zookeepers,
        required_when=lambda p: not p.use_mock_instance,
    ),
)

CONNECTOR_FIELDS: tuple[RequiredField, ...] = (
    RequiredField(keys.USER_NAME, "Accumulo user name", lambda p: p.user_name),
    RequiredField(
        keys.USER_PASS,
        "Accumulo password",
        lambda p: p.password,
        required_when=lambda p: not p.use_sasl,
    ),
)


def check_required(params: "ConnectionParameters", fields: Sequence[RequiredField]) -> None:
    """Raise for the first field in ``fields`` that is required but unset."""

    for field in fields:
        if field.missing(params):
            raise field.error()


class ConnectionParameters:
    """Reads connection settings from a :class:`Configuration`.

    The configuration may be ``None``; that only fails once a value is read.
    Instances and connectors are built fresh on every call and the caller
    owns what is returned. Only the token provider is kept once chosen.

    Any :class:`TokenProvider` may be injected for :meth:`get_connector` and
    :meth:`get_kerberos_token`. The explicit-principal forms
    (:meth:`get_kerberos_token_for`, :meth:`get_kerberos_token_class`) need a
    :class:`KerberosTokenProvider` and raise :class:`ConfigurationError` for
    other Kerberos-mode providers.
    """

    USER_NAME = keys.USER_NAME
    USER_PASS = keys.USER_PASS
    ZOOKEEPERS = keys.ZOOKEEPERS
    INSTANCE_NAME = keys.INSTANCE_NAME
    TABLE_NAME = keys.TABLE_NAME
    SASL_ENABLED = keys.SASL_ENABLED
    USER_KEYTAB = keys.USER_KEYTAB
    USE_MOCK_INSTANCE = keys.USE_MOCK_INSTANCE

    def __init__(
        self,
        conf: Configuration | None,
        *,
        token_provider: TokenProvider | None = None,
        instance_factory: InstanceFactory = ZooKeeperInstance,
    ) -> None:
        self._conf = conf
        self._token_provider = token_provider
        self._instance_factory = instance_factory

    @property
    def conf(self) -> Configuration | None:
        return self._conf

    def _require_conf(self) -> Configuration:
        if self._conf is None:
            raise ConfigurationError("No configuration was provided")
        return self._conf

    @property
    def user_name(self) -> str | None:
        return self._require_conf().get(keys.USER_NAME)

    @property
    def password(self) -> str | None:
        return self._require_conf().get(keys.USER_PASS)

    @property
    def instance_name(self) -> str | None:
        return self._require_conf().get(keys.INSTANCE_NAME)

    @property
    def zookeepers(self) -> str | None:
        return self._require_conf().get(keys.ZOOKEEPERS)

    @property
    def table_name(self) -> str | None:
        return self._require_conf().get(keys.TABLE_NAME)

    @property
    def use_mock_instance(self) -> bool:
        return self._require_conf().get_boolean(keys.USE_MOCK_INSTANCE, False)

    @property
    def use_sasl(self) -> bool:
        return self._require_conf().get_boolean(keys.SASL_ENABLED, False)

    @property
    def keytab(self) -> str | None:
        return self._require_conf().get(keys.USER_KEYTAB)

    @property
    def auth_mode(self) -> AuthMode:
        return AuthMode.from_flag(self.use_sasl)

    @property
    def token_provider(self) -> TokenProvider:
        """Provider for the configured auth mode, chosen on first use."""

        if self._token_provider is None:
            self._token_provider = provider_for(self.auth_mode)
        return self._token_provider

    def get_instance(self) -> Instance:
        check_required(self, INSTANCE_FIELDS)
        instance_name = self.instance_name
        if self.use_mock_instance:
            LOG.debug("Using mock instance", extra={"instance": instance_name})
            return MockInstance(instance_name)
        zookeepers = self.zookeepers
        LOG.debug("Using ZooKeeper instance", extra={"instance": instance_name, "zookeepers": zookeepers})
        return self._instance_factory(instance_name, zookeepers)

    def get_connector(self, instance: Instance | None = None) -> Connector:
        """Authenticate against ``instance`` (or the configured one).

        Errors raised by the instance itself propagate unchanged.
        """

        if instance is None:
            instance = self.get_instance()
        check_required(self, CONNECTOR_FIELDS)
        username = self.user_name
        if self.use_sasl:
            token = self.get_kerberos_token()
        else:
            token = self._provider(AuthMode.PASSWORD).token_for(self)
        return instance.get_connector(username, token)

    def get_kerberos_token(self) -> AuthenticationToken:
        if not self.use_sasl:
            raise ConfigurationError(
                "Cannot construct KerberosToken when SASL is disabled",
                key=keys.SASL_ENABLED,
            )
        return self._provider(AuthMode.KERBEROS).token_for(self)

    def get_kerberos_token_for(
        self,
        principal: str,
        keytab: str | os.PathLike[str] | None = None,
    ) -> AuthenticationToken:
        """Token for ``principal``, logging in from ``keytab`` when given."""

        provider = self._kerberos_provider()
        if keytab is None:
            return provider.principal_token(principal)
        return provider.keytab_token(principal, keytab)

    def get_kerberos_token_class(self) -> TokenClass:
        return self._kerberos_provider().token_class

    def describe(self) -> dict[str, object]:
        """Summary of the resolved settings with the password redacted."""

        return {
            keys.INSTANCE_NAME: self.instance_name,
            keys.ZOOKEEPERS: self.zookeepers,
            keys.TABLE_NAME: self.table_name,
            keys.USER_NAME: self.user_name,
            keys.USER_PASS: None if self.password is None else "********",
            keys.SASL_ENABLED: self.use_sasl,
            keys.USER_KEYTAB: self.keytab,
            keys.USE_MOCK_INSTANCE: self.use_mock_instance,
        }

    def _provider(self, mode: AuthMode) -> TokenProvider:
        if self._token_provider is None and self._conf is not None and self.auth_mode is mode:
            self._token_provider = provider_for(mode)
        if self._token_provider is not None and self._token_provider.mode is mode:
            return self._token_provider
        return provider_for(mode)

    def _kerberos_provider(self) -> KerberosTokenProvider:
        provider = self._provider(AuthMode.KERBEROS)
        if not isinstance(provider, KerberosTokenProvider):
            raise ConfigurationError(f"Token provider for {AuthMode.KERBEROS.value} cannot build Kerberos tokens")
        return provider


__all__ = [
    "CONNECTOR_FIELDS",
    "ConnectionParameters",
    "INSTANCE_FIELDS",
    "InstanceFactory",
    "RequiredField",
    "check_required",
]
