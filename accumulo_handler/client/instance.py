"""Accumulo instance descriptors and the connectors they hand out."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

from kazoo.client import KazooClient
from kazoo.exceptions import KazooException, NoNodeError
from kazoo.handlers.threading import KazooTimeoutError

from .tokens import AuthenticationToken, PasswordToken, check_password

LOG = logging.getLogger(__name__)

ZROOT = "/accumulo"
ZINSTANCES = f"{ZROOT}/instances"
ZUSERS = "users"


class SecurityErrorCode(str, Enum):
    """Reasons an instance refuses a principal."""

    BAD_CREDENTIALS = "BAD_CREDENTIALS"
    USER_DOESNT_EXIST = "USER_DOESNT_EXIST"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"


class AccumuloError(RuntimeError):
    """Raised when an instance cannot be reached or is misconfigured."""


class AccumuloSecurityError(AccumuloError):
    """Raised when an instance rejects the presented credentials."""

    def __init__(self, principal: str, code: SecurityErrorCode, detail: str | None = None) -> None:
        self.principal = principal
        self.code = code
        message = f"Error {code.value} for user {principal}"
        if detail:
            message = f"{message} - {detail}"
        super().__init__(message)


@runtime_checkable
class Instance(Protocol):
    """Protocol implemented by instance descriptors."""

    @property
    def instance_name(self) -> str: ...

    @property
    def zookeepers(self) -> str | None: ...

    def get_connector(self, principal: str, token: AuthenticationToken) -> "Connector":
        """Authenticate ``principal`` and return a connector."""


@dataclass(slots=True)
class Connector:
    """Authenticated link to an instance. The caller owns and closes it."""

    instance: Instance
    principal: str
    token: AuthenticationToken = field(repr=False)
    _session: Any = field(default=None, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)

    def whoami(self) -> str:
        return self.principal

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True
        session, self._session = self._session, None
        if session is None:
            return
        session.stop()
        session.close()


class _MockStore:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users: dict[str, AuthenticationToken] = {"root": PasswordToken(b"")}


_MOCK_STORES: dict[str, _MockStore] = {}
_MOCK_LOCK = threading.Lock()


def _mock_store(name: str) -> _MockStore:
    with _MOCK_LOCK:
        store = _MOCK_STORES.get(name)
        if store is None:
            store = _MOCK_STORES[name] = _MockStore()
        return store


def reset_mock_instances() -> None:
    """Forget every in-memory instance (testing helper)."""

    with _MOCK_LOCK:
        _MOCK_STORES.clear()


class MockInstance:
    """In-memory instance for tests and local development.

    Instances created with the same name share their user table for the
    lifetime of the process. ``root`` exists with an empty password.
    """

    def __init__(self, instance_name: str = "mock-instance") -> None:
        self._name = instance_name
        self._store = _mock_store(instance_name)

    @property
    def instance_name(self) -> str:
        return self._name

    @property
    def zookeepers(self) -> str | None:
        return "localhost"

    def create_user(self, principal: str, token: AuthenticationToken) -> None:
        with self._store.lock:
            self._store.users[principal] = token

    def get_connector(self, principal: str, token: AuthenticationToken) -> Connector:
        with self._store.lock:
            known = self._store.users.get(principal)
            if known is None:
                if not isinstance(token, PasswordToken):
                    raise AccumuloSecurityError(principal, SecurityErrorCode.USER_DOESNT_EXIST)
                self._store.users[principal] = token
            elif isinstance(token, PasswordToken) and known != token:
                raise AccumuloSecurityError(principal, SecurityErrorCode.BAD_CREDENTIALS)
        LOG.debug("Connected to mock instance", extra={"instance": self._name, "principal": principal})
        return Connector(instance=self, principal=principal, token=token)

    def __repr__(self) -> str:
        return f"MockInstance({self._name!r})"


ZooKeeperClientFactory = Callable[..., Any]


class ZooKeeperInstance:
    """Networked instance located through its ZooKeeper quorum.

    Construction performs no I/O; ZooKeeper is contacted when a connector is
    requested.
    """

    def __init__(
        self,
        instance_name: str,
        zookeepers: str,
        *,
        session_timeout: float = 30.0,
        client_factory: ZooKeeperClientFactory = KazooClient,
    ) -> None:
        self._name = instance_name
        self._zookeepers = zookeepers
        self._session_timeout = session_timeout
        self._client_factory = client_factory

    @property
    def instance_name(self) -> str:
        return self._name

    @property
    def zookeepers(self) -> str:
        return self._zookeepers

    @property
    def session_timeout(self) -> float:
        return self._session_timeout

    def get_connector(self, principal: str, token: AuthenticationToken) -> Connector:
        try:
            session = self._client_factory(hosts=self._zookeepers, timeout=self._session_timeout)
        except ValueError as exc:
            raise AccumuloError(f"Invalid ZooKeeper quorum {self._zookeepers}") from exc
        try:
            session.start(timeout=self._session_timeout)
        except KazooTimeoutError as exc:
            session.close()
            raise AccumuloError(f"Unable to reach ZooKeeper quorum {self._zookeepers}") from exc
        try:
            instance_id = self._instance_id(session)
            self._authenticate(session, instance_id, principal, token)
        except BaseException:
            session.stop()
            session.close()
            raise
        LOG.debug(
            "Connected to instance",
            extra={"instance": self._name, "instance_id": instance_id, "principal": principal},
        )
        return Connector(instance=self, principal=principal, token=token, _session=session)

    def _instance_id(self, session: Any) -> str:
        path = f"{ZINSTANCES}/{self._name}"
        try:
            data, _ = session.get(path)
        except NoNodeError as exc:
            raise AccumuloError(f"Instance name {self._name} does not exist in zookeeper") from exc
        except KazooException as exc:
            raise AccumuloError(f"Failed to read {path}: {exc}") from exc
        try:
            return data.decode("utf-8").strip()
        except UnicodeDecodeError as exc:
            raise AccumuloError(f"Instance id stored at {path} is not valid UTF-8") from exc

    def _authenticate(
        self,
        session: Any,
        instance_id: str,
        principal: str,
        token: AuthenticationToken,
    ) -> None:
        path = f"{ZROOT}/{instance_id}/{ZUSERS}/{principal}"
        try:
            stored, _ = session.get(path)
        except NoNodeError as exc:
            raise AccumuloSecurityError(principal, SecurityErrorCode.USER_DOESNT_EXIST) from exc
        except KazooException as exc:
            raise AccumuloError(f"Failed to read {path}: {exc}") from exc
        if token.is_destroyed():
            raise AccumuloSecurityError(principal, SecurityErrorCode.TOKEN_EXPIRED)
        if isinstance(token, PasswordToken):
            if not check_password(token.password, stored or b""):
                raise AccumuloSecurityError(principal, SecurityErrorCode.BAD_CREDENTIALS)
        elif getattr(token, "principal", principal) != principal:
            raise AccumuloSecurityError(
                principal,
                SecurityErrorCode.INVALID_TOKEN,
                "token principal does not match the requested user",
            )

    def __repr__(self) -> str:
        return f"ZooKeeperInstance({self._name!r}, {self._zookeepers!r})"


__all__ = [
    "AccumuloError",
    "AccumuloSecurityError",
    "Connector",
    "Instance",
    "MockInstance",
    "SecurityErrorCode",
    "ZooKeeperInstance",
    "reset_mock_instances",
]
