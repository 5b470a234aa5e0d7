"""Login and logout commands for the obsctl CLI."""

from typing import Optional

import click

from ...auth import client_for
from ...errors import APINotFoundError
from ...models import OIDCSettings, TenantEntry
from ..utils import api_option, handle_error, tenant_option


@click.command()
@api_option
@tenant_option
@click.option(
    "--ca",
    "ca_file",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the TLS CA against which to verify the Observatorium API. "
    "If no server CA is specified, the client will use the system certificates.",
)
@click.option("--oidc.issuer-url", "issuer_url", default="", help="The OIDC issuer URL.")
@click.option("--oidc.client-id", "client_id", default="", help="The OIDC client ID.")
@click.option("--oidc.client-secret", "client_secret", default="", help="The OIDC client secret.")
@click.option(
    "--oidc.audience", "audience", default="", help="The audience for whom the access token is intended."
)
@click.option(
    "--oidc.offline-access/--no-oidc.offline-access",
    "offline_access",
    default=True,
    show_default=True,
    help="Request the offline_access scope.",
)
@click.option(
    "--disable.oidc-check",
    "disable_oidc_check",
    is_flag=True,
    help="Do not check OIDC credentials while saving tenant details locally.",
)
@click.pass_context
def login(
    ctx: click.Context,
    api: str,
    tenant: str,
    ca_file: Optional[str] = None,
    issuer_url: str = "",
    client_id: str = "",
    client_secret: str = "",
    audience: str = "",
    offline_access: bool = True,
    disable_oidc_check: bool = False,
) -> None:
    """Login as a tenant. Will also save tenant details locally.

    Examples:
      obsctl login --api stage --tenant team-a \\
          --oidc.issuer-url https://sso.example.com/auth/realms/obs \\
          --oidc.client-id obsctl --oidc.client-secret s3cr3t
    """
    store = ctx.obj["store"]
    try:
        ca: Optional[bytes] = None
        if ca_file:
            with open(ca_file, "rb") as f:
                ca = f.read()

        if not store.load().has_api(api):
            raise APINotFoundError(
                f"api name {api} does not exist, please add it in via 'context api add'", api=api
            )

        oidc: Optional[OIDCSettings] = None
        if issuer_url:
            oidc = OIDCSettings(
                issuer_url=issuer_url,
                client_id=client_id,
                client_secret=client_secret,
                audience=audience,
                offline_access=offline_access,
            )

        entry = TenantEntry(tenant=tenant, ca=ca, oidc=oidc)
        if oidc is not None and not disable_oidc_check:
            _, entry = client_for(entry)

        store.add_tenant(tenant, api, tenant, oidc=entry.oidc, ca=ca)
        click.echo(f"Logged in as tenant {tenant} on API {api}.")
    except Exception as e:
        handle_error(e)


@click.command()
@api_option
@click.option("--tenant", required=True, help="The name of the tenant to logout.")
@click.pass_context
def logout(ctx: click.Context, api: str, tenant: str) -> None:
    """Logout a tenant. Will remove locally saved details."""
    try:
        ctx.obj["store"].remove_tenant(tenant, api)
        click.echo(f"Logged out tenant {tenant} from API {api}.")
    except Exception as e:
        handle_error(e)
