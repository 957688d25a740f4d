"""Authentication token providers selected by the configured auth mode."""

from __future__ import annotations

import importlib
import inspect
import logging
import os
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

from .client.tokens import AuthenticationToken, PasswordToken
from .config import USER_KEYTAB, USER_PASS, ConfigurationError

if TYPE_CHECKING:
    from .parameters import ConnectionParameters

LOG = logging.getLogger(__name__)

KERBEROS_TOKEN_CLASS = "accumulo_handler.client.kerberos:KerberosToken"
KERBEROS_UNAVAILABLE = (
    "Could not load KerberosToken class. Install accumulo-handler[kerberos] (gssapi) to enable SASL"
)

TokenClass = type[AuthenticationToken]


class AuthMode(str, Enum):
    """Supported authentication mechanisms."""

    PASSWORD = "password"
    KERBEROS = "kerberos"

    @classmethod
    def from_flag(cls, use_sasl: bool) -> AuthMode:
        return cls.KERBEROS if use_sasl else cls.PASSWORD


@runtime_checkable
class TokenProvider(Protocol):
    """Produces the token a connector authenticates with."""

    mode: AuthMode

    def token_for(self, params: "ConnectionParameters") -> AuthenticationToken:
        """Build a token from the resolver's configuration."""


def locate_kerberos_token_class(path: str = KERBEROS_TOKEN_CLASS) -> TokenClass:
    """Import the Kerberos token type named by ``module:attribute``."""

    module_name, _, attr = path.partition(":")
    try:
        module = importlib.import_module(module_name)
        clz = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(KERBEROS_UNAVAILABLE) from exc
    if not inspect.isclass(clz) or not issubclass(clz, AuthenticationToken):
        raise ConfigurationError(f"{path} is not an AuthenticationToken type")
    return clz


class PasswordTokenProvider:
    """Shared-secret authentication using the configured password."""

    mode = AuthMode.PASSWORD

    def token_for(self, params: "ConnectionParameters") -> AuthenticationToken:
        password = params.password
        if password is None:
            raise ConfigurationError(
                f"Accumulo password must be provided in configuration using {USER_PASS}",
                key=USER_PASS,
            )
        return PasswordToken(password)


class KerberosTokenProvider:
    """Ticket-based authentication through a late-bound token type."""

    mode = AuthMode.KERBEROS

    def __init__(
        self,
        token_class: TokenClass | None = None,
        *,
        locate: Callable[[], TokenClass] = locate_kerberos_token_class,
    ) -> None:
        self._token_class = token_class
        self._locate = locate

    @property
    def token_class(self) -> TokenClass:
        if self._token_class is None:
            self._token_class = self._locate()
        return self._token_class

    def token_for(self, params: "ConnectionParameters") -> AuthenticationToken:
        keytab, username = params.keytab, params.user_name
        if keytab is not None:
            return self.keytab_token(username, keytab)
        return self.principal_token(username)

    def principal_token(self, principal: str | None) -> AuthenticationToken:
        """Token for a principal whose credentials are already cached."""

        clz = self.token_class
        LOG.debug("Creating Kerberos token from ticket cache", extra={"principal": principal})
        try:
            return clz(principal)  # type: ignore[call-arg]
        except Exception as exc:
            raise ConfigurationError("Failed to instantiate KerberosToken.") from exc

    def keytab_token(self, principal: str | None, keytab: str | os.PathLike[str]) -> AuthenticationToken:
        """Token obtained by logging in from ``keytab``, replacing any current login."""

        keytab_file = Path(keytab)
        if not keytab_file.is_file() or not os.access(keytab_file, os.R_OK):
            raise ConfigurationError(f"Keytab must be a readable file: {keytab}", key=USER_KEYTAB)
        clz = self.token_class
        LOG.debug(
            "Creating Kerberos token from keytab",
            extra={"principal": principal, "keytab": str(keytab_file)},
        )
        try:
            return clz(principal, keytab_file, True)  # type: ignore[call-arg]
        except Exception as exc:
            raise ConfigurationError("Failed to instantiate KerberosToken.") from exc


TOKEN_PROVIDERS: dict[AuthMode, Callable[[], TokenProvider]] = {
    AuthMode.PASSWORD: PasswordTokenProvider,
    AuthMode.KERBEROS: KerberosTokenProvider,
}


def provider_for(mode: AuthMode) -> TokenProvider:
    """Return a fresh provider for ``mode``."""

    return TOKEN_PROVIDERS[mode]()


__all__ = [
    "AuthMode",
    "KERBEROS_TOKEN_CLASS",
    "KERBEROS_UNAVAILABLE",
    "KerberosTokenProvider",
    "PasswordTokenProvider",
    "TOKEN_PROVIDERS",
    "TokenProvider",
    "locate_kerberos_token_class",
    "provider_for",
]
