"""Cribl MCP Server Package

A Model Context Protocol (MCP) bridge to the Cribl configuration API, with an
authenticated client that refreshes credentials single-flight and normalizes
every upstream failure into one readable message.
"""

from .auth import (
    ClientCredentialsManager,
    Credential,
    CredentialManager,
    LoginManager,
    create_credential_manager,
)
from .client import CriblClient, get_client
from .config import Config, get_config
from .consts import PACKAGE_VERSION
from .exceptions import (
    ConfigError,
    CriblMCPError,
    MalformedResponseError,
    RefreshError,
    UpstreamError,
)
from .models import Envelope
from .normalizer import normalize_error

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    "get_config",
    "get_client",
    "create_credential_manager",
    "normalize_error",
    "Config",
    "CriblClient",
    "Credential",
    "CredentialManager",
    "ClientCredentialsManager",
    "LoginManager",
    "Envelope",
    "CriblMCPError",
    "ConfigError",
    "RefreshError",
    "UpstreamError",
    "MalformedResponseError",
]
