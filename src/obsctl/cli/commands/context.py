"""Context management commands for the obsctl CLI."""

from typing import Optional

import click

from ...store import ContextStore, parse_context_name
from ..formatters import (
    create_console,
    format_contexts_json,
    format_contexts_table,
    format_current_json,
    format_current_table,
    format_json,
)
from ..utils import format_option, handle_error, resolve_format


def _store(ctx: click.Context) -> ContextStore:
    return ctx.obj["store"]


@click.group()
def context() -> None:
    """Manage context configuration."""
    pass


@context.group()
def api() -> None:
    """Add/remove API configuration."""
    pass


@api.command("add")
@click.option("--url", required=True, help="The URL for the Observatorium API.")
@click.option("--name", help="Provide an optional name to easily refer to the Observatorium Instance.")
@click.pass_context
def api_add(ctx: click.Context, url: str, name: Optional[str] = None) -> None:
    """Add API configuration.

    If no name is given, the host of the URL is used.
    """
    try:
        added = _store(ctx).add_api(url, name=name)
        click.echo(f"Added API {added}.")
    except Exception as e:
        handle_error(e)


@api.command("rm")
@click.option("--name", required=True, help="The name of the Observatorium API instance to remove.")
@click.pass_context
def api_rm(ctx: click.Context, name: str) -> None:
    """Remove API configuration and all its tenants.

    If the API is part of the current context, the current context is cleared.
    """
    try:
        _store(ctx).remove_api(name)
        click.echo(f"Removed API {name}.")
    except Exception as e:
        handle_error(e)


@context.command()
@click.argument("name")
@click.pass_context
def switch(ctx: click.Context, name: str) -> None:
    """Switch to another context, given as <api>/<tenant>."""
    try:
        ref = parse_context_name(name)
        _store(ctx).set_current(ref.api, ref.tenant)
        click.echo(f"Switched to context {ref}.")
    except Exception as e:
        handle_error(e)


@context.command()
@format_option
@click.pass_context
def current(ctx: click.Context, format: Optional[str] = None) -> None:
    """View current context configuration."""
    try:
        ref, tenant, api_entry = _store(ctx).resolve_current()

        if resolve_format(format) == "json":
            format_json(format_current_json(ref, tenant, api_entry))
        else:
            console = create_console(no_color=ctx.obj["no_color"])
            format_current_table(ref, tenant, api_entry, console)
    except Exception as e:
        handle_error(e)


@context.command("list")
@format_option
@click.pass_context
def list_contexts(ctx: click.Context, format: Optional[str] = None) -> None:
    """List all saved contexts."""
    try:
        registry = _store(ctx).load()
        contexts = list(registry.iter_contexts())

        if resolve_format(format) == "json":
            format_json(format_contexts_json(contexts, registry.current))
        else:
            console = create_console(no_color=ctx.obj["no_color"])
            format_contexts_table(contexts, registry.current, console)
    except Exception as e:
        handle_error(e)


@context.command("rm")
@click.argument("name")
@click.pass_context
def rm(ctx: click.Context, name: str) -> None:
    """Remove a context, given as <api>/<tenant>.

    If it is the API's only tenant, the API configuration is removed too.
    """
    try:
        ref = parse_context_name(name)
        _store(ctx).remove_context(ref.api, ref.tenant)
        click.echo(f"Removed context {ref}.")
    except Exception as e:
        handle_error(e)
