"""One-shot requests against the current tenant's namespace.

Every call resolves the current context, authenticates (persisting the token
it used) and talks to ``<api>/api/<resource>/v1/<tenant>/<endpoint>``.
Responses are returned as raw bytes; formatting them is up to the caller.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

import requests

from .auth import DEFAULT_TIMEOUT, client_for_current
from .errors import APIResponseError, NetworkError
from .logging import LogCallback, LogEvent, get_logger, log_debug
from .models import APIEntry, TenantEntry
from .proxy import path_join, tenant_prefix
from .store import ContextStore

logger = get_logger(__name__)


def tenant_url(api: APIEntry, tenant: TenantEntry, resource: str, endpoint: str) -> str:
    """Build the URL of ``endpoint`` inside the tenant's namespace."""
    base = api.url if api.url.endswith("/") else api.url + "/"
    return base + path_join(tenant_prefix(resource, tenant.tenant), endpoint)


def _do(
    method: str,
    endpoint: str,
    resource: str,
    store: Optional[ContextStore],
    session: Optional[requests.Session],
    log_callback: Optional[LogCallback],
    **kwargs: Any,
) -> bytes:
    if store is None:
        store = ContextStore(log_callback=log_callback)

    tenant, api = store.get_current()
    client = client_for_current(store, session=session, log_callback=log_callback)
    url = tenant_url(api, tenant, resource, endpoint)

    try:
        response = client.request(method, url, timeout=DEFAULT_TIMEOUT, **kwargs)
    except requests.RequestException as e:
        raise NetworkError(f"fetching: {e}", url=url) from e

    log_debug(
        logger,
        LogEvent.REQUEST,
        f"made {method} request",
        log_callback,
        endpoint=endpoint,
        status_code=response.status_code,
    )

    if not response.ok:
        raise APIResponseError(
            f"{response.status_code} {response.reason} response: {response.content!r}",
            url=url,
            status_code=response.status_code,
            body=response.content,
        )
    return response.content


def get(
    endpoint: str,
    resource: str = "metrics",
    params: Optional[Union[Dict[str, Any], List[Tuple[str, str]]]] = None,
    store: Optional[ContextStore] = None,
    session: Optional[requests.Session] = None,
    log_callback: Optional[LogCallback] = None,
) -> bytes:
    """GET ``endpoint`` in the current tenant's namespace.

    Args:
        endpoint: Path below the tenant prefix, e.g. ``/api/v1/labels``
        resource: Resource kind (``metrics``, ``logs`` or ``traces``)
        params: Optional query parameters
        store: Context store; defaults to the store at the resolved config path
        session: Session to authenticate; a new one is created if omitted
        log_callback: Optional observer for request events

    Returns:
        Response body

    Raises:
        EmptyContextError: If no context is selected
        NetworkError: If the request cannot be sent
        APIResponseError: If the API answers with a non-success status
    """
    return _do("GET", endpoint, resource, store, session, log_callback, params=params)


def put(
    endpoint: str,
    body: bytes,
    resource: str = "metrics",
    content_type: str = "application/yaml",
    store: Optional[ContextStore] = None,
    session: Optional[requests.Session] = None,
    log_callback: Optional[LogCallback] = None,
) -> bytes:
    """PUT ``body`` to ``endpoint`` in the current tenant's namespace.

    Used to upload rule files, hence the YAML default content type.

    Raises:
        EmptyContextError: If no context is selected
        NetworkError: If the request cannot be sent
        APIResponseError: If the API answers with a non-success status
    """
    return _do(
        "PUT",
        endpoint,
        resource,
        store,
        session,
        log_callback,
        data=body,
        headers={"Content-Type": content_type},
    )
