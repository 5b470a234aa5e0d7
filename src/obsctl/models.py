"""Data model for the context registry.

The registry is a two-level collection: APIs keyed by name, each holding
tenant contexts keyed by a local alias. Tenant-level values are immutable so
that refreshed credentials are always handed back as new values.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import APINotFoundError, TenantNotFoundError

CONTEXT_SEPARATOR = "/"


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Token:
    """An OAuth2 bearer token as stored in the registry."""

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str = ""
    expiry: Optional[datetime] = None

    def is_reusable(self, now: datetime) -> bool:
        """Check whether the token is still usable at ``now``.

        A token without expiry, or whose expiry equals ``now``, is expired.
        """
        return bool(self.access_token) and self.expiry is not None and _as_utc(self.expiry) > _as_utc(now)

    def is_valid(self, now: datetime) -> bool:
        """Check whether a token held in memory can still be sent at ``now``.

        Unlike :meth:`is_reusable`, a token without expiry never expires.
        """
        return bool(self.access_token) and (self.expiry is None or _as_utc(self.expiry) > _as_utc(now))

    @property
    def header_type(self) -> str:
        """Token type as it should appear in the Authorization header."""
        if not self.token_type or self.token_type.lower() == "bearer":
            return "Bearer"
        if self.token_type.lower() == "mac":
            return "MAC"
        if self.token_type.lower() == "basic":
            return "Basic"
        return self.token_type


@dataclass(frozen=True)
class OIDCSettings:
    """OIDC client-credentials settings for a tenant."""

    issuer_url: str
    client_id: str
    client_secret: str
    audience: str = ""
    offline_access: bool = True
    token: Optional[Token] = None

    @property
    def scopes(self) -> List[str]:
        """Scopes requested with the client-credentials grant."""
        if self.offline_access:
            return ["openid", "offline_access"]
        return ["openid"]


@dataclass(frozen=True)
class TenantEntry:
    """A tenant registered under an API.

    ``tenant`` is the tenant ID sent to the remote API; the key under which
    the entry is stored is only a local alias.
    """

    tenant: str
    ca: Optional[bytes] = None
    oidc: Optional[OIDCSettings] = None

    def with_token(self, token: Token) -> "TenantEntry":
        """Return a copy of this entry carrying ``token`` as its cached token."""
        if self.oidc is None:
            return self
        return replace(self, oidc=replace(self.oidc, token=token))


@dataclass
class APIEntry:
    """A registered remote API and its tenant contexts."""

    url: str
    contexts: Dict[str, TenantEntry] = field(default_factory=dict)


@dataclass(frozen=True)
class ContextRef:
    """Reference to an ``(api, tenant)`` pair; empty when both parts are empty."""

    api: str = ""
    tenant: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.api and not self.tenant

    def __str__(self) -> str:
        return f"{self.api}{CONTEXT_SEPARATOR}{self.tenant}"


@dataclass
class Registry:
    """Working copy of the persisted registry."""

    apis: Dict[str, APIEntry] = field(default_factory=dict)
    current: ContextRef = field(default_factory=ContextRef)

    def has_api(self, name: str) -> bool:
        return name in self.apis

    def get_api(self, name: str) -> APIEntry:
        """Return the named API.

        Raises:
            APINotFoundError: If no API has that name
        """
        try:
            return self.apis[name]
        except KeyError:
            raise APINotFoundError(f"api with name {name} doesn't exist", api=name) from None

    def get_tenant(self, api: str, name: str) -> Tuple[TenantEntry, APIEntry]:
        """Return a tenant entry together with its owning API.

        Raises:
            APINotFoundError: If the API does not exist
            TenantNotFoundError: If the tenant does not exist under the API
        """
        api_entry = self.get_api(api)
        try:
            return api_entry.contexts[name], api_entry
        except KeyError:
            raise TenantNotFoundError(
                f"tenant with name {name} doesn't exist in api {api}", api=api, tenant=name
            ) from None

    def set_tenant(self, api: str, name: str, tenant: TenantEntry) -> None:
        """Store ``tenant`` under ``api`` with local alias ``name``."""
        self.get_api(api).contexts[name] = tenant

    def remove_tenant(self, api: str, name: str) -> None:
        """Delete a tenant, clearing ``current`` if it pointed at it."""
        self.get_tenant(api, name)
        del self.apis[api].contexts[name]
        if self.current == ContextRef(api, name):
            self.clear_current()

    def remove_api(self, name: str) -> None:
        """Delete an API and its tenants, clearing ``current`` if it pointed at it."""
        self.get_api(name)
        del self.apis[name]
        if self.current.api == name:
            self.clear_current()

    def clear_current(self) -> None:
        self.current = ContextRef()

    def iter_contexts(self) -> Iterator[ContextRef]:
        """Yield every registered context, sorted by API then tenant name."""
        for api_name in sorted(self.apis):
            for tenant_name in sorted(self.apis[api_name].contexts):
                yield ContextRef(api_name, tenant_name)
