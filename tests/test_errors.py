"""Tests for error classes."""

from obsctl.errors import (
    APINotFoundError,
    APIResponseError,
    AuthError,
    ConfigIOError,
    ConfigurationError,
    ContextError,
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


class TestErrorClasses:
    """Tests for all error classes."""

    def test_obsctl_error(self) -> None:
        """Test ObsctlError base class."""
        error = ObsctlError("Base error message")
        assert str(error) == "Base error message"
        assert error.message == "Base error message"

    def test_invalid_name_error(self) -> None:
        error = InvalidNameError("bad name", name="a/b")
        assert error.name == "a/b"
        assert isinstance(error, ContextError)

    def test_invalid_url_error(self) -> None:
        error = InvalidURLError("bad url", url="stage")
        assert error.url == "stage"
        assert isinstance(error, ContextError)

    def test_duplicate_name_error(self) -> None:
        """Test DuplicateNameError with and without an owning API."""
        error = DuplicateNameError("dup", name="t", api="stage")
        assert error.name == "t"
        assert error.api == "stage"

        api_error = DuplicateNameError("dup", name="stage")
        assert api_error.api is None

    def test_not_found_errors(self) -> None:
        """Test the API and tenant lookup errors."""
        api_error = APINotFoundError("missing", api="stage")
        assert api_error.api == "stage"
        assert api_error.tenant is None
        assert isinstance(api_error, NotFoundError)

        tenant_error = TenantNotFoundError("missing", api="stage", tenant="t")
        assert tenant_error.tenant == "t"
        assert isinstance(tenant_error, NotFoundError)
        assert isinstance(tenant_error, ContextError)

    def test_empty_context_error(self) -> None:
        error = EmptyContextError("current context is empty")
        assert isinstance(error, ContextError)
        assert isinstance(error, ObsctlError)

    def test_configuration_errors(self) -> None:
        """Test that config file errors carry the file path."""
        decode_error = DecodeError("corrupt", path="/tmp/config.json")
        assert decode_error.path == "/tmp/config.json"
        assert isinstance(decode_error, ConfigurationError)

        io_error = ConfigIOError("unreadable")
        assert io_error.path is None
        assert isinstance(io_error, ConfigurationError)

    def test_auth_errors(self) -> None:
        discovery_error = ProviderDiscoveryError("no provider", issuer_url="https://sso")
        assert discovery_error.issuer_url == "https://sso"
        assert isinstance(discovery_error, AuthError)
        assert isinstance(TokenFetchError("no token"), AuthError)

    def test_api_response_error(self) -> None:
        """Test APIResponseError carries status and body."""
        error = APIResponseError("500", url="https://stage/", status_code=500, body=b"boom")
        assert error.url == "https://stage/"
        assert error.status_code == 500
        assert error.body == b"boom"
        assert isinstance(error, NetworkError)
