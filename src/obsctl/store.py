"""Context store for obsctl.

This module provides the ContextStore class, which owns every change to the
registry of APIs and tenants. Each public method reads the config file,
applies one change and writes the file back, so every call is self-contained
and safe to run from a fresh process.

Typical usage:

    from obsctl.store import ContextStore

    store = ContextStore()
    store.add_api("https://observatorium.example.com", name="stage")
    store.add_tenant("team-a", "stage", "team-a")
    tenant, api = store.get_current()
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union
from urllib.parse import urlsplit

from .codec import load, save
from .errors import (
    DuplicateNameError,
    EmptyContextError,
    InvalidNameError,
    InvalidURLError,
)
from .logging import LogCallback, LogEvent, get_logger, log_debug
from .models import (
    CONTEXT_SEPARATOR,
    APIEntry,
    ContextRef,
    OIDCSettings,
    Registry,
    TenantEntry,
)

logger = get_logger("store")


def url_host(url: str) -> str:
    """Return the host of ``url`` with its port, leaving out any user info."""
    return urlsplit(url).netloc.rpartition("@")[2]


def validate_absolute_url(url: str) -> None:
    """Check that ``url`` has both a scheme and a host.

    User info does not count as a host, so ``https://bob@`` is rejected.

    Raises:
        InvalidURLError: If either part is missing or the URL cannot be parsed
    """
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise InvalidURLError(f"{url} is not a valid URL", url=url) from e
    if not parts.scheme or not parts.hostname:
        raise InvalidURLError(
            f"{url} is not a valid URL (scheme: {parts.scheme},host: {parts.hostname or ''})",
            url=url,
        )


def _validate_name(name: str, kind: str) -> None:
    if not name:
        raise InvalidNameError(f"{kind} name cannot be empty", name=name)
    if CONTEXT_SEPARATOR in name:
        raise InvalidNameError(f"{kind} name {name} cannot contain slashes", name=name)


def parse_context_name(value: str) -> ContextRef:
    """Parse the ``<api>/<tenant>`` form of a context name.

    Raises:
        InvalidNameError: If the value is not exactly two non-empty parts
    """
    parts = value.split(CONTEXT_SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidNameError("invalid context name: use format <api>/<tenant>", name=value)
    return ContextRef(api=parts[0], tenant=parts[1])


class ContextStore:
    """Registry of APIs and tenants backed by the config file.

    The store holds no registry state between calls. ``path`` pins the config
    file (tests, alternate profiles); otherwise it is resolved on every call.
    ``log_callback`` receives every store event in addition to the module
    logger.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        log_callback: Optional[LogCallback] = None,
    ) -> None:
        self.path = path
        self.log_callback = log_callback

    def load(self) -> Registry:
        """Return a fresh snapshot of the persisted registry."""
        return load(self.path, self.log_callback)

    def _save(self, registry: Registry) -> None:
        save(registry, self.path, self.log_callback)

    def _debug(self, msg: str, **data: object) -> None:
        log_debug(logger, LogEvent.CONTEXT, msg, self.log_callback, **data)

    def add_api(self, url: str, name: Optional[str] = None) -> str:
        """Register a new API.

        Args:
            url: Absolute base URL of the API
            name: Local name; defaults to the URL's host

        Returns:
            The name the API was registered under

        Raises:
            InvalidURLError: If ``url`` is not absolute
            InvalidNameError: If ``name`` contains a slash
            DuplicateNameError: If an API with that name already exists
        """
        registry = self.load()

        validate_absolute_url(url)

        if not name:
            # Host names never contain slashes.
            name = url_host(url)
            self._debug("use hostname as name", name=name)
        else:
            _validate_name(name, "api")

        if registry.has_api(name):
            raise DuplicateNameError(f"api with name {name} already exists", name=name)

        if not url.endswith("/"):
            url += "/"

        registry.apis[name] = APIEntry(url=url)
        self._save(registry)
        self._debug("added api", api=name, url=url)
        return name

    def remove_api(self, name: str) -> None:
        """Remove an API and all its tenants.

        Clears the current context if it points at this API.

        Raises:
            APINotFoundError: If the API does not exist
        """
        registry = self.load()
        was_current = registry.current.api == name
        registry.remove_api(name)
        if was_current:
            self._debug("empty current config", api=name)
        self._save(registry)

    def add_tenant(
        self,
        name: str,
        api: str,
        tenant: str,
        oidc: Optional[OIDCSettings] = None,
        ca: Optional[bytes] = None,
    ) -> None:
        """Register a tenant under an existing API.

        When no context is selected the new tenant becomes the current one.

        Args:
            name: Local alias for the tenant
            api: Name of the owning API
            tenant: Tenant ID sent to the remote API
            oidc: Optional OIDC client-credentials settings
            ca: Optional raw CA certificate bytes

        Raises:
            APINotFoundError: If the API does not exist
            InvalidNameError: If ``name`` is empty or contains a slash
            DuplicateNameError: If the tenant already exists under the API
        """
        registry = self.load()
        api_entry = registry.get_api(api)

        _validate_name(name, "tenant")

        if name in api_entry.contexts:
            raise DuplicateNameError(f"tenant with name {name} already exists in api {api}", name=name, api=api)

        api_entry.contexts[name] = TenantEntry(tenant=tenant, ca=ca, oidc=oidc)

        if registry.current.is_empty:
            registry.current = ContextRef(api=api, tenant=name)
            self._debug("set new tenant as current", api=api, tenant=name)

        self._save(registry)

    def remove_tenant(self, name: str, api: str) -> None:
        """Remove a tenant from an API.

        Clears the current context only if it points at this tenant.

        Raises:
            APINotFoundError: If the API does not exist
            TenantNotFoundError: If the tenant does not exist under the API
        """
        registry = self.load()
        registry.remove_tenant(api, name)
        self._save(registry)

    def remove_context(self, api: str, tenant: str) -> None:
        """Remove the ``api/tenant`` context.

        If it is the API's only tenant, the whole API is removed.

        Raises:
            APINotFoundError: If the API does not exist
            TenantNotFoundError: If the tenant does not exist under the API
        """
        registry = self.load()
        _, api_entry = registry.get_tenant(api, tenant)
        if len(api_entry.contexts) == 1:
            registry.remove_api(api)
            self._debug("removed api with its only tenant", api=api, tenant=tenant)
        else:
            registry.remove_tenant(api, tenant)
        self._save(registry)

    def set_current(self, api: str, tenant: str) -> None:
        """Switch the current context.

        Raises:
            APINotFoundError: If the API does not exist
            TenantNotFoundError: If the tenant does not exist under the API
        """
        registry = self.load()
        registry.get_tenant(api, tenant)

        new_current = ContextRef(api=api, tenant=tenant)
        if registry.current == new_current:
            self._debug("context is the same as current", api=api, tenant=tenant)

        registry.current = new_current
        self._save(registry)

    def get_context(self, api: str, tenant: str) -> Tuple[TenantEntry, APIEntry]:
        """Return the tenant and API configuration for ``api/tenant``.

        Raises:
            APINotFoundError: If the API does not exist
            TenantNotFoundError: If the tenant does not exist under the API
        """
        return self.load().get_tenant(api, tenant)

    def get_current(self) -> Tuple[TenantEntry, APIEntry]:
        """Return the tenant and API configuration of the current context.

        Raises:
            EmptyContextError: If no context is selected
            NotFoundError: If the selection points at a missing API or tenant
        """
        _, tenant, api = self.resolve_current()
        return tenant, api

    def resolve_current(self) -> Tuple[ContextRef, TenantEntry, APIEntry]:
        """Like :meth:`get_current`, also returning the selected context name."""
        registry = self.load()
        tenant, api = self._resolve_current(registry)
        return registry.current, tenant, api

    def current_ref(self) -> ContextRef:
        """Return the name of the current context (empty if unset)."""
        return self.load().current

    def list_contexts(self) -> List[ContextRef]:
        """Return every registered context, sorted by API then tenant."""
        return list(self.load().iter_contexts())

    def update_tenant(self, api: str, name: str, tenant: TenantEntry) -> None:
        """Replace an existing tenant entry and persist the change.

        Raises:
            APINotFoundError: If the API does not exist
            TenantNotFoundError: If the tenant does not exist under the API
        """
        registry = self.load()
        registry.get_tenant(api, name)
        registry.set_tenant(api, name, tenant)
        self._save(registry)

    @staticmethod
    def _resolve_current(registry: Registry) -> Tuple[TenantEntry, APIEntry]:
        if not registry.current.api or not registry.current.tenant:
            raise EmptyContextError("current context is empty")
        return registry.get_tenant(registry.current.api, registry.current.tenant)
