"""Proxy command for the obsctl CLI."""

import click

from ...proxy import RESOURCES, new_proxy_server, run_proxy
from ..utils import handle_error


@click.command()
@click.option(
    "--resource",
    type=click.Choice(list(RESOURCES)),
    default="metrics",
    show_default=True,
    help="Resource to proxy into the current tenant's namespace.",
)
@click.option(
    "--listen",
    default="127.0.0.1:8080",
    show_default=True,
    help="Address to listen on, as host:port.",
)
@click.pass_context
def proxy(ctx: click.Context, resource: str, listen: str) -> None:
    """Start a local proxy that forwards requests to the current tenant.

    Requests to http://<listen>/<path> are sent, authenticated, to
    <api>/api/<resource>/v1/<tenant>/<path>.

    Examples:
      # Point a Prometheus-compatible UI at http://127.0.0.1:8080
      obsctl proxy --resource metrics
    """
    try:
        server = new_proxy_server(resource, listen, store=ctx.obj["store"])
        click.echo(f"Proxying {resource} of the current context on http://{listen}", err=True)
        run_proxy(server)
    except Exception as e:
        handle_error(e)
