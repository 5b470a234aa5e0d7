"""OIDC client-credentials authentication for tenants.

Turns a tenant's OIDC settings into a ``requests.Session`` that attaches a
bearer token to every request. A cached, unexpired token is reused instead of
requesting a new one, and the token in use is handed back so that the caller
can persist it.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

import requests
from requests.auth import AuthBase

from .errors import ProviderDiscoveryError, TokenFetchError
from .logging import LogCallback, LogEvent, get_logger, log_debug
from .models import OIDCSettings, TenantEntry, Token
from .store import ContextStore

logger = get_logger(__name__)

# Timeout in seconds for discovery and token requests
DEFAULT_TIMEOUT = 30

WELL_KNOWN_PATH = "/.well-known/openid-configuration"

# How the client ID and secret are sent to the token endpoint
AUTH_STYLE_BASIC = "basic"
AUTH_STYLE_POST = "post"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProviderMetadata:
    """Subset of the OIDC discovery document obsctl relies on."""

    issuer: str
    token_endpoint: str


def discover_provider(
    issuer_url: str, session: requests.Session, timeout: float = DEFAULT_TIMEOUT
) -> ProviderMetadata:
    """Fetch the OIDC discovery document for ``issuer_url``.

    Args:
        issuer_url: OIDC issuer URL
        session: Session used for the request
        timeout: Request timeout in seconds

    Returns:
        Provider metadata with the token endpoint

    Raises:
        ProviderDiscoveryError: If the document cannot be fetched or is invalid
    """
    url = issuer_url.rstrip("/") + WELL_KNOWN_PATH
    try:
        response = session.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise ProviderDiscoveryError(f"constructing oidc provider: {e}", issuer_url=issuer_url) from e

    if not response.ok:
        raise ProviderDiscoveryError(
            f"constructing oidc provider: {response.status_code} {response.reason}: {response.text[:200]}",
            issuer_url=issuer_url,
        )

    try:
        document = response.json()
    except ValueError as e:
        raise ProviderDiscoveryError(
            f"constructing oidc provider: invalid discovery document: {e}", issuer_url=issuer_url
        ) from e

    if not isinstance(document, dict):
        raise ProviderDiscoveryError(
            "constructing oidc provider: discovery document is not an object", issuer_url=issuer_url
        )

    issuer = document.get("issuer")
    if not isinstance(issuer, str) or issuer.rstrip("/") != issuer_url.rstrip("/"):
        raise ProviderDiscoveryError(
            f"constructing oidc provider: issuer did not match the issuer returned by provider, "
            f"expected {issuer_url!r} got {issuer!r}",
            issuer_url=issuer_url,
        )

    token_endpoint = document.get("token_endpoint")
    if not isinstance(token_endpoint, str) or not token_endpoint:
        raise ProviderDiscoveryError(
            "constructing oidc provider: discovery document has no token_endpoint", issuer_url=issuer_url
        )

    return ProviderMetadata(issuer=issuer, token_endpoint=token_endpoint)


class TokenSource(ABC):
    """Something that can produce a bearer token."""

    @abstractmethod
    def token(self) -> Token:
        """Return a token that can be sent now."""


class ClientCredentialsTokenSource(TokenSource):
    """Requests a new token with the OAuth2 client-credentials grant on every call."""

    def __init__(
        self,
        settings: OIDCSettings,
        token_url: str,
        session: requests.Session,
        now: Clock = utcnow,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.settings = settings
        self.token_url = token_url
        self.session = session
        self.now = now
        self.timeout = timeout
        # Client authentication style that worked last; None until known.
        self.auth_style: Optional[str] = None

    def _form(self) -> Dict[str, str]:
        form = {
            "grant_type": "client_credentials",
            "scope": " ".join(self.settings.scopes),
        }
        if self.settings.audience:
            form["audience"] = self.settings.audience
        return form

    def _post(self, style: str) -> requests.Response:
        form = self._form()
        auth: Optional[Tuple[str, str]] = None
        if style == AUTH_STYLE_POST:
            form["client_id"] = self.settings.client_id
            form["client_secret"] = self.settings.client_secret
        else:
            auth = (self.settings.client_id, self.settings.client_secret)
        return self.session.post(
            self.token_url,
            data=form,
            auth=auth,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )

    def token(self) -> Token:
        """Fetch a fresh token from the token endpoint.

        Raises:
            TokenFetchError: If the request fails or the response has no token
        """
        issuer = self.settings.issuer_url
        try:
            if self.auth_style is not None:
                response = self._post(self.auth_style)
            else:
                # Try HTTP basic first, then credentials in the form body,
                # and remember whichever the provider accepted.
                response = self._post(AUTH_STYLE_BASIC)
                style = AUTH_STYLE_BASIC
                if not response.ok:
                    response = self._post(AUTH_STYLE_POST)
                    style = AUTH_STYLE_POST
                if response.ok:
                    self.auth_style = style
        except requests.RequestException as e:
            raise TokenFetchError(f"fetching token: {e}", issuer_url=issuer) from e

        if not response.ok:
            raise TokenFetchError(
                f"fetching token: {response.status_code} {response.reason}: {response.text[:200]}",
                issuer_url=issuer,
            )

        try:
            payload: Any = response.json()
        except ValueError as e:
            raise TokenFetchError(f"fetching token: invalid token response: {e}", issuer_url=issuer) from e

        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise TokenFetchError("fetching token: server response missing access_token", issuer_url=issuer)

        expiry: Optional[datetime] = None
        expires_in = payload.get("expires_in")
        try:
            seconds = int(expires_in) if expires_in is not None else 0
        except (TypeError, ValueError):
            seconds = 0
        if seconds > 0:
            expiry = self.now() + timedelta(seconds=seconds)

        return Token(
            access_token=str(payload["access_token"]),
            token_type=str(payload.get("token_type") or "Bearer"),
            refresh_token=str(payload.get("refresh_token") or ""),
            expiry=expiry,
        )


class ReuseTokenSource(TokenSource):
    """Holds a token and only asks ``base`` for a new one once it has expired.

    Safe to share between threads; concurrent callers see at most one fetch.
    """

    def __init__(self, token: Optional[Token], base: TokenSource, now: Clock = utcnow) -> None:
        self._token = token
        self._base = base
        self._now = now
        self._lock = threading.Lock()

    def token(self) -> Token:
        with self._lock:
            if self._token is not None and self._token.is_valid(self._now()):
                return self._token
            self._token = self._base.token()
            return self._token


class BearerAuth(AuthBase):
    """Attaches the token from ``source`` to every outgoing request."""

    def __init__(self, source: TokenSource) -> None:
        self.source = source

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        token = self.source.token()
        r.headers["Authorization"] = f"{token.header_type} {token.access_token}"
        return r


def client_for(
    tenant: TenantEntry,
    session: Optional[requests.Session] = None,
    now: Clock = utcnow,
    log_callback: Optional[LogCallback] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Tuple[requests.Session, TenantEntry]:
    """Build an HTTP session authenticated as ``tenant``.

    Tenants without OIDC settings get a plain session. Otherwise the provider
    is discovered, one token is resolved (the cached one if it expires
    strictly after now, else a new one) and the session attaches it to every
    request, refreshing it lazily once it expires.

    Args:
        tenant: Tenant configuration
        session: Session to authenticate; a new one is created if omitted
        now: Clock used for expiry checks
        log_callback: Optional observer for auth events
        timeout: Timeout in seconds for discovery and token requests

    Returns:
        The session and a new tenant entry carrying the resolved token. The
        given ``tenant`` is never modified.

    Raises:
        ProviderDiscoveryError: If provider discovery fails
        TokenFetchError: If no token can be obtained
    """
    if session is None:
        session = requests.Session()

    if tenant.oidc is None:
        return session, tenant

    provider = discover_provider(tenant.oidc.issuer_url, session, timeout)
    base = ClientCredentialsTokenSource(tenant.oidc, provider.token_endpoint, session, now, timeout)

    cached = tenant.oidc.token
    if cached is not None and cached.is_reusable(now()):
        source = ReuseTokenSource(cached, base, now)
        log_debug(logger, LogEvent.AUTH, "reusing cached token", log_callback, tenant=tenant.tenant)
    else:
        source = ReuseTokenSource(None, base, now)

    token = source.token()
    log_debug(logger, LogEvent.AUTH, "resolved token", log_callback, tenant=tenant.tenant)

    session.auth = BearerAuth(source)
    return session, tenant.with_token(token)


def client_for_current(
    store: Optional[ContextStore] = None,
    session: Optional[requests.Session] = None,
    now: Clock = utcnow,
    log_callback: Optional[LogCallback] = None,
) -> requests.Session:
    """Build a session for the current context and persist its token.

    Args:
        store: Context store; defaults to the store at the resolved config path
        session: Session to authenticate; a new one is created if omitted
        now: Clock used for expiry checks
        log_callback: Optional observer for auth events

    Returns:
        Authenticated session for the current tenant

    Raises:
        EmptyContextError: If no context is selected
        ProviderDiscoveryError: If provider discovery fails
        TokenFetchError: If no token can be obtained
        ConfigIOError: If the refreshed token cannot be saved
    """
    if store is None:
        store = ContextStore(log_callback=log_callback)

    ref, tenant, _ = store.resolve_current()
    client, updated = client_for(tenant, session=session, now=now, log_callback=log_callback)

    store.update_tenant(ref.api, ref.tenant, updated)
    log_debug(logger, LogEvent.AUTH, "updated token in config file", log_callback, tenant=updated.tenant)

    return client
