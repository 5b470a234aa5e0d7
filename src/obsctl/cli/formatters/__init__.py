"""CLI formatters package."""

from .json import (
    format_contexts_json,
    format_current_json,
    format_json,
)
from .table import (
    create_console,
    format_contexts_table,
    format_current_table,
)

__all__ = [
    "format_json",
    "format_contexts_json",
    "format_current_json",
    "create_console",
    "format_contexts_table",
    "format_current_table",
]
