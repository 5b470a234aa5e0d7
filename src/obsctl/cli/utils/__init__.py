"""CLI utilities package."""

from .helpers import (
    ExitCode,
    exit_code_for,
    handle_error,
    parse_params,
    resolve_format,
)
from .options import (
    api_option,
    format_option,
    tenant_option,
)

__all__ = [
    "ExitCode",
    "exit_code_for",
    "handle_error",
    "parse_params",
    "resolve_format",
    "api_option",
    "format_option",
    "tenant_option",
]
