"""obsctl: work against a multi-tenant observability API as a saved context.

This package keeps a local registry of API endpoints and the tenants
registered against them, authenticates as the selected tenant with OIDC
client credentials, and can run a local proxy that forwards requests into the
tenant's namespace.
"""

# Version of the package
try:
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as _version

    __version__ = _version("obsctl")
except PackageNotFoundError:
    __version__ = "0.0.0"

from .auth import client_for, client_for_current
from .errors import (
    APINotFoundError,
    APIResponseError,
    ConfigIOError,
    DecodeError,
    DuplicateNameError,
    EmptyContextError,
    InvalidNameError,
    InvalidURLError,
    NetworkError,
    NotFoundError,
    ObsctlError,
    ProviderDiscoveryError,
    TenantNotFoundError,
    TokenFetchError,
)
from .models import APIEntry, ContextRef, OIDCSettings, Registry, TenantEntry, Token
from .proxy import ProxyServer, new_proxy_server, run_proxy
from .store import ContextStore, parse_context_name

# Define public API
__all__ = [
    # Store
    "ContextStore",
    "parse_context_name",
    # Model
    "Registry",
    "APIEntry",
    "TenantEntry",
    "OIDCSettings",
    "Token",
    "ContextRef",
    # Credentials
    "client_for",
    "client_for_current",
    # Proxy
    "ProxyServer",
    "new_proxy_server",
    "run_proxy",
    # Errors
    "ObsctlError",
    "InvalidNameError",
    "InvalidURLError",
    "DuplicateNameError",
    "NotFoundError",
    "APINotFoundError",
    "TenantNotFoundError",
    "EmptyContextError",
    "DecodeError",
    "ConfigIOError",
    "ProviderDiscoveryError",
    "TokenFetchError",
    "NetworkError",
    "APIResponseError",
]
