#!/usr/bin/env python3
"""Example of basic obsctl library usage.

Registers an API and a tenant in a scratch config file, then fetches the
tenant's label names. Set OBSCTL_EXAMPLE_URL and the OIDC variables to point
it at a real Observatorium deployment.
"""

import os
import tempfile

from obsctl import ContextStore, OIDCSettings, ObsctlError
from obsctl import fetcher


def print_event(level, event, data):
    """Print every store and auth event as it happens."""
    print(f"  [{event}] {data}")


def main():
    """Run the example."""
    url = os.environ.get("OBSCTL_EXAMPLE_URL", "http://localhost:8080")
    issuer = os.environ.get("OBSCTL_EXAMPLE_ISSUER_URL")

    with tempfile.TemporaryDirectory() as tmp:
        store = ContextStore(path=os.path.join(tmp, "config.json"), log_callback=print_event)

        api = store.add_api(url, name="example")
        oidc = None
        if issuer:
            oidc = OIDCSettings(
                issuer_url=issuer,
                client_id=os.environ.get("OBSCTL_EXAMPLE_CLIENT_ID", ""),
                client_secret=os.environ.get("OBSCTL_EXAMPLE_CLIENT_SECRET", ""),
            )
        store.add_tenant("test", api, os.environ.get("OBSCTL_EXAMPLE_TENANT", "test"), oidc=oidc)

        print(f"Current context: {store.current_ref()}")

        try:
            body = fetcher.get("/api/v1/labels", store=store, log_callback=print_event)
            print(body.decode())
        except ObsctlError as e:
            print(f"Request failed: {e}")


if __name__ == "__main__":
    main()
