"""Common CLI options and decorators."""

from functools import wraps
from typing import Any, Callable, TypeVar, cast

import click

F = TypeVar("F", bound=Callable[..., Any])


def format_option(func: F) -> F:
    """Add --format option to a command."""

    @click.option(
        "--format",
        type=click.Choice(["table", "json"], case_sensitive=False),
        help="Output format. Defaults to 'table' for TTY, 'json' for non-TTY.",
    )
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return cast(F, wrapper)


def api_option(func: F) -> F:
    """Add the required --api option to a command."""

    @click.option("--api", required=True, help="The name of the Observatorium API that has been saved previously.")
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return cast(F, wrapper)


def tenant_option(func: F) -> F:
    """Add the required --tenant option to a command."""

    @click.option("--tenant", required=True, help="The name of the tenant.")
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return cast(F, wrapper)
