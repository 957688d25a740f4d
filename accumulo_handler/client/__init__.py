"""Minimal Accumulo client surface used by the connection resolver."""

from .instance import (
    AccumuloError,
    AccumuloSecurityError,
    Connector,
    Instance,
    MockInstance,
    SecurityErrorCode,
    ZooKeeperInstance,
    reset_mock_instances,
)
from .tokens import AuthenticationToken, PasswordToken, check_password, hash_password

__all__ = [
    "AccumuloError",
    "AccumuloSecurityError",
    "AuthenticationToken",
    "Connector",
    "Instance",
    "MockInstance",
    "PasswordToken",
    "SecurityErrorCode",
    "ZooKeeperInstance",
    "check_password",
    "hash_password",
    "reset_mock_instances",
]
