"""Rich table formatter for CLI output."""

import sys
from typing import List, Optional, TextIO

from rich.console import Console
from rich.table import Table

from ...models import APIEntry, ContextRef, TenantEntry


def create_console(output: Optional[TextIO] = None, no_color: bool = False) -> Console:
    """Create a Rich console instance.

    Args:
        output: Output stream (defaults to stdout)
        no_color: Disable color output

    Returns:
        Console instance
    """
    if output is None:
        output = sys.stdout

    return Console(file=output, no_color=no_color)


def format_contexts_table(contexts: List[ContextRef], current: ContextRef, console: Console) -> None:
    """Print registered contexts, marking the current one."""
    if not contexts:
        console.print("No contexts configured. Add one with 'obsctl context api add' and 'obsctl login'.")
        return

    table = Table(title="Contexts")
    table.add_column("Current", justify="center")
    table.add_column("API", style="cyan")
    table.add_column("Tenant", style="green")

    for context in contexts:
        table.add_row("*" if context == current else "", context.api, context.tenant)

    console.print(table)


def format_current_table(current: ContextRef, tenant: TenantEntry, api: APIEntry, console: Console) -> None:
    """Print the current context."""
    console.print(f"[bold]Current context:[/bold] {current}")
    console.print(f"[bold]API URL:[/bold] {api.url}")
    console.print(f"[bold]Tenant:[/bold] {tenant.tenant}")
    if tenant.oidc is not None:
        console.print(f"[bold]OIDC issuer:[/bold] {tenant.oidc.issuer_url}")
        console.print(f"[bold]OIDC client ID:[/bold] {tenant.oidc.client_id}")
