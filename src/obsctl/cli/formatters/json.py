"""JSON output formatter for CLI."""

import json
import sys
from typing import Any, Dict, List, Optional, TextIO

from ...models import APIEntry, ContextRef, TenantEntry


def format_json(data: Any, output: Optional[TextIO] = None, indent: int = 2) -> None:
    """Format data as JSON and write to output.

    Args:
        data: Data to format
        output: Output stream (defaults to stdout)
        indent: JSON indentation level
    """
    if output is None:
        output = sys.stdout

    json.dump(data, output, indent=indent, ensure_ascii=False, sort_keys=True, default=str)
    output.write("\n")


def format_contexts_json(contexts: List[ContextRef], current: ContextRef) -> Dict[str, Any]:
    """Format the context list for JSON output.

    Args:
        contexts: Registered contexts
        current: Current context (may be empty)

    Returns:
        Formatted data structure
    """
    return {
        "contexts": [{"api": c.api, "tenant": c.tenant, "current": c == current} for c in contexts],
        "current": None if current.is_empty else str(current),
        "count": len(contexts),
    }


def format_current_json(current: ContextRef, tenant: TenantEntry, api: APIEntry) -> Dict[str, Any]:
    """Format the current context for JSON output. Secrets and tokens are omitted."""
    return {
        "context": str(current),
        "api": current.api,
        "url": api.url,
        "tenant": tenant.tenant,
        "oidc": (
            {
                "issuer_url": tenant.oidc.issuer_url,
                "client_id": tenant.oidc.client_id,
                "audience": tenant.oidc.audience,
            }
            if tenant.oidc is not None
            else None
        ),
    }
