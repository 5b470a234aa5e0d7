"""CLI commands package."""

# Import all command modules to make them available
from . import context, login, logs, metrics, proxy, traces

__all__ = ["context", "login", "logs", "metrics", "proxy", "traces"]
