"""Main CLI application for obsctl."""

import click
import rich_click as rich_click

from ..logging import configure_cli_logging
from ..store import ContextStore

# Configure rich-click
rich_click.rich_click.USE_RICH_MARKUP = True
rich_click.rich_click.SHOW_ARGUMENTS = True
rich_click.rich_click.GROUP_ARGUMENTS_OPTIONS = True


def _print_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    from .. import __version__

    click.echo(f"obsctl version: {__version__}")
    ctx.exit()


@click.group()
@click.option(
    "--log.level",
    "log_level",
    type=click.Choice(["error", "warn", "info", "debug"], case_sensitive=False),
    default="info",
    show_default=True,
    help="Log filtering level.",
)
@click.option("--no-color", is_flag=True, help="Disable color output.")
@click.option(
    "--version",
    is_flag=True,
    is_eager=True,
    expose_value=False,
    callback=_print_version,
    help="Print version information.",
)
@click.pass_context
def app(ctx: click.Context, log_level: str = "info", no_color: bool = False) -> None:
    """CLI to interact with Observatorium.

    Save API endpoints and tenants as contexts, switch between them, and
    proxy requests into the current tenant's namespace.

    Examples:
      # Register an API and log in as a tenant
      obsctl context api add --url https://observatorium.example.com --name stage
      obsctl login --api stage --tenant team-a --oidc.issuer-url https://sso.example.com/auth/realms/obs \\
          --oidc.client-id obsctl --oidc.client-secret s3cr3t

      # Browse the tenant's metrics with a local UI
      obsctl proxy --resource metrics --listen 127.0.0.1:8080
    """
    configure_cli_logging(log_level)

    ctx.ensure_object(dict)
    ctx.obj.update(
        {
            "log_level": log_level,
            "no_color": no_color,
        }
    )
    ctx.obj.setdefault("store", ContextStore())


# Import and register subcommands after the group is defined to avoid
# circular imports.
from .commands import context, login, logs, metrics, proxy, traces  # noqa: E402

app.add_command(context.context)
app.add_command(login.login)
app.add_command(login.logout)
app.add_command(proxy.proxy)
app.add_command(metrics.metrics)
app.add_command(logs.logs)
app.add_command(traces.traces)


if __name__ == "__main__":
    app()
