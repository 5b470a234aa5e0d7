"""Persistence codec for the context registry.

Reads and writes the registry as one JSON file. The JSON shape matches the
config file written by earlier obsctl releases, so existing files keep
working: ``ca`` is base64 and token expiries are RFC 3339 timestamps.
"""

import base64
import binascii
import json
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config_paths import CONFIG_FILE_MODE, ensure_config_dir_exists, resolve_config_file_path
from .errors import ConfigIOError, DecodeError
from .logging import LogCallback, LogEvent, get_logger, log_debug
from .models import APIEntry, ContextRef, OIDCSettings, Registry, TenantEntry, Token

logger = get_logger(__name__)

_RFC3339_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2})(?:\.(?P<frac>\d+))?(?P<tz>[Zz]|[+-]\d{2}:\d{2})$"
)


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp.

    Accepts ``Z`` suffixes and fractions longer than microseconds. The zero
    time (year 1) and the empty string map to ``None``.

    Raises:
        ValueError: If the value is not an RFC 3339 timestamp
    """
    if not value:
        return None
    match = _RFC3339_RE.match(value)
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {value!r}")
    frac = (match.group("frac") or "")[:6].ljust(6, "0")
    tz = match.group("tz")
    if tz in ("Z", "z"):
        tz = "+00:00"
    parsed = datetime.fromisoformat(f"{match.group('base').replace(' ', 'T')}.{frac}{tz}")
    if parsed.year == 1:
        return None
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a datetime as RFC 3339, treating naive values as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _encode_token(token: Token) -> Dict[str, Any]:
    data: Dict[str, Any] = {"access_token": token.access_token}
    if token.token_type:
        data["token_type"] = token.token_type
    if token.refresh_token:
        data["refresh_token"] = token.refresh_token
    if token.expiry is not None:
        data["expiry"] = format_timestamp(token.expiry)
    return data


def _encode_tenant(tenant: TenantEntry) -> Dict[str, Any]:
    oidc: Optional[Dict[str, Any]] = None
    if tenant.oidc is not None:
        oidc = {
            "audience": tenant.oidc.audience,
            "clientID": tenant.oidc.client_id,
            "clientSecret": tenant.oidc.client_secret,
            "issuerURL": tenant.oidc.issuer_url,
            "offlineAccess": tenant.oidc.offline_access,
            "token": _encode_token(tenant.oidc.token) if tenant.oidc.token is not None else None,
        }
    return {
        "tenant": tenant.tenant,
        "ca": base64.b64encode(tenant.ca).decode("ascii") if tenant.ca is not None else None,
        "oidc": oidc,
    }


def encode_registry(registry: Registry) -> Dict[str, Any]:
    """Convert a registry to its JSON-compatible form."""
    return {
        "apis": {
            name: {
                "url": api.url,
                "contexts": {alias: _encode_tenant(t) for alias, t in api.contexts.items()},
            }
            for name, api in registry.apis.items()
        },
        "current": {"api": registry.current.api, "tenant": registry.current.tenant},
    }


def _expect(value: Any, kind: type, where: str, path: Optional[str], optional: bool = True) -> Any:
    if value is None and optional:
        return None
    if not isinstance(value, kind):
        raise DecodeError(f"parsing config file: {where} must be a {kind.__name__}", path=path)
    return value


def _decode_token(data: Any, where: str, path: Optional[str]) -> Optional[Token]:
    data = _expect(data, dict, where, path)
    if data is None:
        return None
    expiry_raw = _expect(data.get("expiry"), str, f"{where}.expiry", path) or ""
    try:
        expiry = parse_timestamp(expiry_raw)
    except ValueError as e:
        raise DecodeError(f"parsing config file: {where}.expiry: {e}", path=path) from e
    return Token(
        access_token=_expect(data.get("access_token"), str, f"{where}.access_token", path) or "",
        token_type=_expect(data.get("token_type"), str, f"{where}.token_type", path) or "",
        refresh_token=_expect(data.get("refresh_token"), str, f"{where}.refresh_token", path) or "",
        expiry=expiry,
    )


def _decode_oidc(data: Any, where: str, path: Optional[str]) -> Optional[OIDCSettings]:
    data = _expect(data, dict, where, path)
    if data is None:
        return None
    offline_access = _expect(data.get("offlineAccess"), bool, f"{where}.offlineAccess", path)
    return OIDCSettings(
        issuer_url=_expect(data.get("issuerURL"), str, f"{where}.issuerURL", path) or "",
        client_id=_expect(data.get("clientID"), str, f"{where}.clientID", path) or "",
        client_secret=_expect(data.get("clientSecret"), str, f"{where}.clientSecret", path) or "",
        audience=_expect(data.get("audience"), str, f"{where}.audience", path) or "",
        offline_access=True if offline_access is None else offline_access,
        token=_decode_token(data.get("token"), f"{where}.token", path),
    )


def _decode_tenant(data: Any, where: str, path: Optional[str]) -> TenantEntry:
    data = _expect(data, dict, where, path, optional=False)
    ca_raw = _expect(data.get("ca"), str, f"{where}.ca", path)
    ca: Optional[bytes] = None
    if ca_raw is not None:
        try:
            ca = base64.b64decode(ca_raw, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"parsing config file: {where}.ca is not valid base64", path=path) from e
    return TenantEntry(
        tenant=_expect(data.get("tenant"), str, f"{where}.tenant", path) or "",
        ca=ca,
        oidc=_decode_oidc(data.get("oidc"), f"{where}.oidc", path),
    )


def decode_registry(data: Any, path: Optional[str] = None) -> Registry:
    """Build a registry from its JSON-compatible form.

    Missing fields take their zero value; fields of the wrong type are errors.

    Raises:
        DecodeError: If the structure does not match the registry schema
    """
    data = _expect(data, dict, "root", path, optional=False)
    registry = Registry()

    apis = _expect(data.get("apis"), dict, "apis", path) or {}
    for name, api_data in apis.items():
        api_data = _expect(api_data, dict, f"apis.{name}", path, optional=False)
        contexts = _expect(api_data.get("contexts"), dict, f"apis.{name}.contexts", path) or {}
        registry.apis[name] = APIEntry(
            url=_expect(api_data.get("url"), str, f"apis.{name}.url", path) or "",
            contexts={
                alias: _decode_tenant(t, f"apis.{name}.contexts.{alias}", path) for alias, t in contexts.items()
            },
        )

    current = _expect(data.get("current"), dict, "current", path) or {}
    registry.current = ContextRef(
        api=_expect(current.get("api"), str, "current.api", path) or "",
        tenant=_expect(current.get("tenant"), str, "current.tenant", path) or "",
    )
    return registry


def load(path: Optional[Union[str, Path]] = None, log_callback: Optional[LogCallback] = None) -> Registry:
    """Read the registry from disk, creating an empty file if none exists.

    Args:
        path: Registry file; defaults to the resolved config file path
        log_callback: Optional observer for config events

    Returns:
        The decoded registry; an empty file yields an empty registry

    Raises:
        DecodeError: If the file holds malformed content
        ConfigIOError: If the file cannot be created or read
    """
    config_file = resolve_config_file_path(path)
    try:
        ensure_config_dir_exists(config_file)
        if not config_file.exists():
            fd = os.open(config_file, os.O_RDONLY | os.O_CREAT, CONFIG_FILE_MODE)
            os.close(fd)
        content = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigIOError(f"opening config file: {e}", path=str(config_file)) from e

    if not content.strip():
        log_debug(logger, LogEvent.CONFIG, "read empty config file", log_callback, path=str(config_file))
        return Registry()

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise DecodeError(f"parsing config file: {e}", path=str(config_file)) from e

    registry = decode_registry(data, path=str(config_file))
    log_debug(logger, LogEvent.CONFIG, "read and parsed config file", log_callback, path=str(config_file))
    return registry


def save(
    registry: Registry, path: Optional[Union[str, Path]] = None, log_callback: Optional[LogCallback] = None
) -> None:
    """Overwrite the registry file with ``registry``.

    Args:
        registry: Registry to persist
        path: Registry file; defaults to the resolved config file path
        log_callback: Optional observer for config events

    Raises:
        ConfigIOError: If the file cannot be written
    """
    config_file = resolve_config_file_path(path)
    payload = json.dumps(encode_registry(registry), indent=2) + "\n"
    try:
        ensure_config_dir_exists(config_file)
        fd = os.open(config_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CONFIG_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
    except OSError as e:
        raise ConfigIOError(f"writing config: {e}", path=str(config_file)) from e

    log_debug(logger, LogEvent.CONFIG, "saved config in config file", log_callback, path=str(config_file))
