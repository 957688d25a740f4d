"""Configuration-driven connection resolver for Apache Accumulo."""

from .config import Configuration, ConfigurationError, load_configuration
from .parameters import ConnectionParameters
from .tokens import AuthMode, KerberosTokenProvider, PasswordTokenProvider, TokenProvider

__version__ = "0.1.0"

__all__ = [
    "AuthMode",
    "Configuration",
    "ConfigurationError",
    "ConnectionParameters",
    "KerberosTokenProvider",
    "PasswordTokenProvider",
    "TokenProvider",
    "__version__",
    "load_configuration",
]
