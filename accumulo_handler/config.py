"""Generic key/value configuration and file loading helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, Mapping

import tomllib

from pydantic import BaseModel, StrictBool, StrictFloat, StrictInt, StrictStr, ValidationError

ConfigValue = StrictStr | StrictBool | StrictInt | StrictFloat

USER_NAME = "accumulo.user.name"
USER_PASS = "accumulo.user.pass"
ZOOKEEPERS = "accumulo.zookeepers"
INSTANCE_NAME = "accumulo.instance.name"
TABLE_NAME = "accumulo.table.name"

# SASL/Kerberos
SASL_ENABLED = "accumulo.sasl.enabled"
USER_KEYTAB = "accumulo.user.keytab"

USE_MOCK_INSTANCE = "accumulo.mock.instance"


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class ConfigurationFile(BaseModel):
    """Shape of a flattened configuration file."""

    properties: dict[str, ConfigValue]


class Configuration:
    """String-keyed configuration map read by the connection resolver.

    Values are stored as given; :meth:`get` renders them as strings and
    :meth:`get_boolean` parses ``true``/``false``.
    """

    def __init__(self, values: Mapping[str, object] | None = None) -> None:
        self._values: dict[str, object] = dict(values or {})

    def get(self, key: str, default: str | None = None) -> str | None:
        value = self._values.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def get_boolean(self, key: str, default: bool = False) -> bool:
        value = self._values.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            if text == "true":
                return True
            if text == "false":
                return False
        return default

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def set_boolean(self, key: str, value: bool) -> None:
        self._values[key] = bool(value)

    def unset(self, key: str) -> None:
        self._values.pop(key, None)

    def update(self, values: Mapping[str, object]) -> None:
        self._values.update(values)

    def as_dict(self) -> dict[str, object]:
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Configuration({len(self._values)} entries)"


def load_configuration(path: str | os.PathLike[str]) -> Configuration:
    """Load a TOML file into a :class:`Configuration`.

    Nested tables flatten into dotted keys, so ``[accumulo.user]`` with
    ``name = "root"`` yields ``accumulo.user.name``.
    """

    file_path = Path(path)
    with file_path.open("rb") as handle:
        try:
            raw = tomllib.load(handle)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise ConfigurationError(f"Invalid configuration file {file_path}: {exc}") from exc
    try:
        parsed = ConfigurationFile(properties=_flatten(raw))
    except ValidationError as exc:
        raise ConfigurationError(f"Unsupported value in configuration file {file_path}: {exc}") from exc
    return Configuration(parsed.properties)


def parse_overrides(entries: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` strings into a mapping."""

    overrides: dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigurationError(f"Expected key=value, got {entry!r}")
        overrides[key] = value
    return overrides


def _flatten(data: Mapping[str, object], prefix: str = "") -> dict[str, object]:
    flat: dict[str, object] = {}
    for name, value in data.items():
        key = f"{prefix}{name}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, prefix=f"{key}."))
        else:
            flat[key] = value
    return flat


__all__ = [
    "Configuration",
    "ConfigurationError",
    "ConfigurationFile",
    "INSTANCE_NAME",
    "SASL_ENABLED",
    "TABLE_NAME",
    "USER_KEYTAB",
    "USER_NAME",
    "USER_PASS",
    "USE_MOCK_INSTANCE",
    "ZOOKEEPERS",
    "load_configuration",
    "parse_overrides",
]
