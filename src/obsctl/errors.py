"""Error types for obsctl.

This module defines the error types raised by the context store, the
credential provider and the tenant proxy. Every error carries the offending
names or URL as attributes so callers can react to the kind of failure
without parsing messages.
"""

from typing import Optional


class ObsctlError(Exception):
    """Base class for all obsctl errors."""

    def __init__(self, message: str) -> None:
        """Initialize the error.

        Args:
            message: Error message
        """
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        """Return the error message."""
        return self.message


class ContextError(ObsctlError):
    """Base class for errors about APIs, tenants and the current context."""

    pass


class InvalidNameError(ContextError):
    """Raised when an API or tenant name is empty or contains a slash.

    Examples:
        >>> try:
        ...     store.add_api("https://obs.example.com", name="a/b")
        ... except InvalidNameError as e:
        ...     print(f"Bad name: {e.name}")
    """

    def __init__(self, message: str, name: str) -> None:
        """Initialize invalid name error.

        Args:
            message: Error message
            name: The rejected name
        """
        super().__init__(message)
        self.name = name


class InvalidURLError(ContextError):
    """Raised when a URL is not absolute (missing scheme or host)."""

    def __init__(self, message: str, url: str) -> None:
        """Initialize invalid URL error.

        Args:
            message: Error message
            url: The rejected URL
        """
        super().__init__(message)
        self.url = url


class DuplicateNameError(ContextError):
    """Raised when adding an API or tenant whose name is already taken."""

    def __init__(self, message: str, name: str, api: Optional[str] = None) -> None:
        """Initialize duplicate name error.

        Args:
            message: Error message
            name: The duplicated name
            api: Owning API name when the duplicate is a tenant
        """
        super().__init__(message)
        self.name = name
        self.api = api


class NotFoundError(ContextError):
    """Raised when an API or tenant does not exist."""

    def __init__(self, message: str, api: str, tenant: Optional[str] = None) -> None:
        """Initialize not found error.

        Args:
            message: Error message
            api: API name that was looked up
            tenant: Tenant name that was looked up, if any
        """
        super().__init__(message)
        self.api = api
        self.tenant = tenant


class APINotFoundError(NotFoundError):
    """Raised when the named API is not registered.

    Examples:
        >>> try:
        ...     store.remove_api("stage")
        ... except APINotFoundError as e:
        ...     print(f"No API named {e.api}")
    """

    pass


class TenantNotFoundError(NotFoundError):
    """Raised when the named tenant is not registered under an existing API."""

    pass


class EmptyContextError(ContextError):
    """Raised when an operation needs the current context but none is selected."""

    pass


class ConfigurationError(ObsctlError):
    """Base class for errors reading or writing the config file."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error message
            path: Optional path to the config file that caused the error
        """
        super().__init__(message)
        self.path = path


class DecodeError(ConfigurationError):
    """Raised when the config file holds malformed content.

    Examples:
        >>> try:
        ...     codec.load()
        ... except DecodeError as e:
        ...     print(f"Corrupt config at {e.path}: {e}")
    """

    pass


class ConfigIOError(ConfigurationError):
    """Raised when the config file cannot be read or written."""

    pass


class AuthError(ObsctlError):
    """Base class for OIDC authentication errors."""

    def __init__(self, message: str, issuer_url: Optional[str] = None) -> None:
        """Initialize authentication error.

        Args:
            message: Error message
            issuer_url: OIDC issuer involved in the failure
        """
        super().__init__(message)
        self.issuer_url = issuer_url


class ProviderDiscoveryError(AuthError):
    """Raised when the OIDC provider metadata cannot be discovered."""

    pass


class TokenFetchError(AuthError):
    """Raised when a client-credentials token cannot be obtained."""

    pass


class NetworkError(ObsctlError):
    """Raised when a request to the remote API fails.

    Examples:
        >>> try:
        ...     fetcher.get("/api/v1/labels")
        ... except NetworkError as e:
        ...     print(f"Network error: {e}")
    """

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        """Initialize network error.

        Args:
            message: Error message
            url: Optional URL that was being accessed
        """
        super().__init__(message)
        self.url = url


class APIResponseError(NetworkError):
    """Raised when the remote API answers with a non-success status."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: int = 0, body: bytes = b"") -> None:
        """Initialize API response error.

        Args:
            message: Error message
            url: URL that was requested
            status_code: HTTP status returned by the API
            body: Raw response body
        """
        super().__init__(message, url)
        self.status_code = status_code
        self.body = body
