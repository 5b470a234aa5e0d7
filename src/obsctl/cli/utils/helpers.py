"""Helper functions for CLI operations."""

import sys
from typing import Iterable, List, Optional, Tuple

import click

from ...errors import (
    ConfigurationError,
    EmptyContextError,
    InvalidNameError,
    InvalidURLError,
    NotFoundError,
    ObsctlError,
)


class ExitCode:
    """Standard exit codes for the CLI."""

    SUCCESS = 0
    GENERIC_ERROR = 1
    INVALID_USAGE = 2
    CONTEXT_NOT_FOUND = 3
    CONFIG_ERROR = 4


def resolve_format(cli_format: Optional[str] = None, default_tty: str = "table", default_non_tty: str = "json") -> str:
    """Resolve output format with TTY detection.

    Args:
        cli_format: Format specified via CLI flag
        default_tty: Default format for TTY output
        default_non_tty: Default format for non-TTY output

    Returns:
        Resolved format name
    """
    if cli_format:
        return cli_format.lower()

    # Auto-detect based on TTY
    if sys.stdout.isatty():
        return default_tty
    else:
        return default_non_tty


def parse_params(params: Iterable[str], param_hint: str = "--param") -> List[Tuple[str, str]]:
    """Split repeated ``KEY=VALUE`` options into query parameters.

    Raises:
        click.BadParameter: If a value is not in ``KEY=VALUE`` form
    """
    query = []
    for param in params:
        key, sep, value = param.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"{param!r} is not in KEY=VALUE form", param_hint=param_hint)
        query.append((key, value))
    return query


def exit_code_for(error: Exception) -> int:
    """Map an error to the exit code the CLI reports for it."""
    if isinstance(error, (InvalidNameError, InvalidURLError, click.BadParameter, ValueError)):
        return ExitCode.INVALID_USAGE
    if isinstance(error, (NotFoundError, EmptyContextError)):
        return ExitCode.CONTEXT_NOT_FOUND
    if isinstance(error, ConfigurationError):
        return ExitCode.CONFIG_ERROR
    return ExitCode.GENERIC_ERROR


def handle_error(error: Exception, exit_code: Optional[int] = None) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        error: Exception to handle
        exit_code: Exit code to use; derived from the error kind if omitted
    """
    if exit_code is None:
        exit_code = exit_code_for(error)
    if isinstance(error, ObsctlError) and getattr(error, "path", None):
        click.echo(f"Error: {error} ({getattr(error, 'path')})", err=True)
    else:
        click.echo(f"Error: {str(error)}", err=True)
    sys.exit(exit_code)
