"""Tests for one-shot requests against the current tenant."""

import pytest

from obsctl import fetcher
from obsctl.errors import APIResponseError, EmptyContextError, NetworkError
from obsctl.models import APIEntry, OIDCSettings, TenantEntry
from obsctl.store import ContextStore

from fakes import ISSUER_URL, FakeSession

LABELS_URL = "https://stage:9090/api/metrics/v1/t/api/v1/labels"
RULES_URL = "https://stage:9090/api/metrics/v1/t/api/v1/rules/raw"


@pytest.fixture
def stage_store(store: ContextStore) -> ContextStore:
    store.add_api("https://stage:9090", name="stage")
    store.add_tenant("t", "stage", "t")
    return store


@pytest.mark.parametrize(
    "api_url,resource,endpoint,expected",
    [
        ("https://stage:9090/", "metrics", "/api/v1/labels", LABELS_URL),
        ("https://stage:9090", "logs", "loki/api/v1/labels", "https://stage:9090/api/logs/v1/t/loki/api/v1/labels"),
        ("https://h/gw/", "metrics", "/api/v1/query", "https://h/gw/api/metrics/v1/t/api/v1/query"),
    ],
)
def test_tenant_url(api_url: str, resource: str, endpoint: str, expected: str) -> None:
    assert fetcher.tenant_url(APIEntry(url=api_url), TenantEntry(tenant="t"), resource, endpoint) == expected


def test_get(stage_store: ContextStore) -> None:
    session = FakeSession()
    session.add("GET", LABELS_URL, json_body={"status": "success", "data": ["__name__"]})

    body = fetcher.get("/api/v1/labels", params={"match[]": "up"}, store=stage_store, session=session)

    assert body == b'{"status": "success", "data": ["__name__"]}'
    assert session.calls[-1].url == LABELS_URL + "?match%5B%5D=up"


def test_get_sends_bearer_token(store: ContextStore, oidc_session: FakeSession) -> None:
    store.add_api("https://stage:9090", name="stage")
    store.add_tenant("t", "stage", "t", oidc=OIDCSettings(issuer_url=ISSUER_URL, client_id="c", client_secret="s"))
    oidc_session.add("GET", LABELS_URL, json_body={"status": "success"})

    fetcher.get("/api/v1/labels", store=store, session=oidc_session)

    assert oidc_session.calls[-1].headers["Authorization"] == "Bearer fresh-token"


def test_put(stage_store: ContextStore) -> None:
    session = FakeSession()
    session.add("PUT", RULES_URL, content=b"successfully updated rules file")
    rules = b"groups:\n- name: example\n  rules: []\n"

    response = fetcher.put("/api/v1/rules/raw", rules, store=stage_store, session=session)

    assert response == b"successfully updated rules file"
    request = session.calls[-1]
    assert request.body == rules
    assert request.headers["Content-Type"] == "application/yaml"


def test_error_status(stage_store: ContextStore) -> None:
    session = FakeSession()
    session.add("GET", LABELS_URL, status=500, content=b"internal error")

    with pytest.raises(APIResponseError) as exc_info:
        fetcher.get("/api/v1/labels", store=stage_store, session=session)
    assert exc_info.value.status_code == 500
    assert exc_info.value.body == b"internal error"
    assert exc_info.value.url == LABELS_URL


def test_network_error(stage_store: ContextStore) -> None:
    with pytest.raises(NetworkError) as exc_info:
        fetcher.get("/api/v1/labels", store=stage_store, session=FakeSession())
    assert not isinstance(exc_info.value, APIResponseError)
    assert exc_info.value.url == LABELS_URL


def test_empty_context(store: ContextStore) -> None:
    with pytest.raises(EmptyContextError):
        fetcher.get("/api/v1/labels", store=store, session=FakeSession())
