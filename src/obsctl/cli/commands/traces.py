"""Traces commands for the obsctl CLI."""

import click

from ... import fetcher
from ..utils import handle_error

SERVICES_ENDPOINT = "/api/services"


@click.group()
def traces() -> None:
    """Trace-based operations for Observatorium."""
    pass


@traces.command()
@click.pass_context
def services(ctx: click.Context) -> None:
    """List names of services with trace information.

    The response body is written as-is.
    """
    try:
        body = fetcher.get(SERVICES_ENDPOINT, resource="traces", store=ctx.obj["store"])
        click.echo(body, nl=False)
    except Exception as e:
        handle_error(e)
