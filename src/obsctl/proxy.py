"""Tenant-scoped reverse proxy.

Runs a local HTTP server that forwards every request to the API of the
current context, adding an ``api/<resource>/v1/<tenant>`` prefix to the path.
For example ``http://localhost:8080/api/v1/labels`` becomes
``https://obs.example.com/api/metrics/v1/team-a/api/v1/labels``, which lets
UIs that expect an un-prefixed API (such as a Thanos Querier) work against a
multi-tenant endpoint.
"""

import signal
import threading
from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, unquote, urlsplit

import requests

from .auth import DEFAULT_TIMEOUT, Clock, client_for_current, utcnow
from .errors import ObsctlError
from .logging import LogCallback, LogEvent, get_logger, log_debug, log_info, log_warning
from .store import ContextStore, validate_absolute_url

logger = get_logger(__name__)

PREFIX_HEADER = "X-Forwarded-Prefix"
FORWARDED_FOR_HEADER = "X-Forwarded-For"

RESOURCES = ("metrics", "logs", "traces")

# Seconds to wait for the serving thread after a shutdown request
DEFAULT_SHUTDOWN_TIMEOUT = 10.0

HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "proxy-connection",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
}

# Recomputed by requests for the outgoing request.
_REQUEST_SKIP_HEADERS = HOP_HEADERS | {"host", "content-length"}

# Characters left unescaped when encoding a URL path.
_PATH_SAFE = "/:@!$&'()*+,;="


def _clean_path(p: str) -> str:
    # Lexical cleanup: drop empty and "." segments, resolve "..".
    rooted = p.startswith("/")
    segments: List[str] = []
    for seg in p.split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            if segments and segments[-1] != "..":
                segments.pop()
            elif not rooted:
                segments.append("..")
            continue
        segments.append(seg)
    cleaned = "/".join(segments)
    if rooted:
        return "/" + cleaned
    return cleaned or "."


def path_join(*elems: str) -> str:
    """Join path elements with single slashes and clean the result."""
    joined = "/".join(e for e in elems if e)
    if not joined:
        return ""
    return _clean_path(joined)


def single_joining_slash(a: str, b: str) -> str:
    if b.startswith("/"):
        return a + b
    return a + "/" + b


def escape_path(path: str) -> str:
    """Return the default percent-encoding of a decoded path."""
    return quote(path, safe=_PATH_SAFE)


def escaped_path(path: str, raw_path: str) -> str:
    """Return ``raw_path`` if it is a valid encoding of ``path``, else the default encoding."""
    if raw_path and unquote(raw_path) == path:
        return raw_path
    return escape_path(path)


def tenant_prefix(resource: str, tenant: str) -> str:
    return f"api/{resource}/v1/{tenant}"


def split_request_target(target: str) -> Tuple[str, str, str]:
    """Split an inbound request target into decoded path, raw path and query.

    The raw path is only returned when the client used an escaping that
    differs from the default encoding of the decoded path (for example an
    encoded slash), and is empty otherwise.
    """
    if target.startswith("/"):
        raw, _, query = target.partition("?")
        query = query.partition("#")[0]
    else:
        parts = urlsplit(target)
        raw, query = parts.path, parts.query
    raw = raw or "/"
    path = unquote(raw)
    if raw == escape_path(path):
        return path, "", query
    return path, raw, query


def join_url_path(
    base_path: str,
    base_raw_path: str,
    req_path: str,
    req_raw_path: str,
    resource: str,
    tenant: str,
) -> Tuple[str, str]:
    """Join the API base path, the tenant prefix and an inbound path.

    Operates on decoded and raw paths in lockstep so that escaped segments
    survive. The raw result is empty unless one of the inputs had one.

    Returns:
        Tuple of decoded path and raw path
    """
    prefix = tenant_prefix(resource, tenant)
    if not base_raw_path and not req_raw_path:
        return single_joining_slash(path_join(base_path, prefix), req_path), ""

    apath = path_join(escaped_path(base_path, base_raw_path), prefix)
    bpath = escaped_path(req_path, req_raw_path)
    joined = path_join(base_path, prefix)

    if bpath.startswith("/"):
        return joined + req_path, apath + bpath
    return joined + "/" + req_path, apath + "/" + bpath


def parse_listen_addr(listen_addr: str) -> Tuple[str, int]:
    """Parse ``host:port``, ``:port`` or ``port`` into a server address.

    Raises:
        ValueError: If the port is missing or not a number
    """
    host, sep, port = listen_addr.rpartition(":")
    if not sep:
        host, port = "", listen_addr
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"invalid listen address {listen_addr!r}: port must be a number") from None
    if not 0 <= port_number <= 65535:
        raise ValueError(f"invalid listen address {listen_addr!r}: port out of range")
    return host, port_number


@dataclass(frozen=True)
class ProxyTarget:
    """Where and under which tenant prefix requests are forwarded."""

    scheme: str
    netloc: str
    base_path: str
    base_raw_path: str
    resource: str
    tenant: str

    @classmethod
    def from_api_url(cls, api_url: str, resource: str, tenant: str) -> "ProxyTarget":
        parts = urlsplit(api_url)
        base_path = unquote(parts.path)
        base_raw_path = parts.path if parts.path != escape_path(base_path) else ""
        return cls(parts.scheme, parts.netloc, base_path, base_raw_path, resource, tenant)

    def url_for(self, target: str) -> str:
        """Build the upstream URL for an inbound request target."""
        path, raw_path, query = split_request_target(target)
        new_path, new_raw_path = join_url_path(
            self.base_path, self.base_raw_path, path, raw_path, self.resource, self.tenant
        )
        upstream_path = escaped_path(new_path, new_raw_path)
        if not upstream_path.startswith("/"):
            upstream_path = "/" + upstream_path
        url = f"{self.scheme}://{self.netloc}{upstream_path}"
        if query:
            url += "?" + query
        return url


class ServerState(str, Enum):
    """Lifecycle of a proxy server."""

    CONSTRUCTED = "constructed"
    LISTENING = "listening"
    CLOSED = "closed"


class ProxyHandler(BaseHTTPRequestHandler):
    """Forwards every request to the server's target."""

    server: "ProxyServer"
    server_version = "obsctl-proxy"

    def do_GET(self) -> None:
        self._proxy()

    def do_HEAD(self) -> None:
        self._proxy()

    def do_POST(self) -> None:
        self._proxy()

    def do_PUT(self) -> None:
        self._proxy()

    def do_PATCH(self) -> None:
        self._proxy()

    def do_DELETE(self) -> None:
        self._proxy()

    def do_OPTIONS(self) -> None:
        self._proxy()

    def _read_body(self) -> bytes:
        transfer_encoding = self.headers.get("Transfer-Encoding", "")
        if "chunked" in transfer_encoding.lower():
            chunks: List[bytes] = []
            while True:
                line = self.rfile.readline()
                if not line:
                    break
                try:
                    size = int(line.split(b";", 1)[0].strip(), 16)
                except ValueError:
                    break
                if size == 0:
                    # Drain trailers after the last chunk.
                    while True:
                        tail = self.rfile.readline()
                        if not tail or tail in (b"\r\n", b"\n"):
                            break
                    break
                chunks.append(self.rfile.read(size))
                self.rfile.read(2)
            return b"".join(chunks)
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length) if length > 0 else b""

    def _forward_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        for key, value in self.headers.items():
            if key.lower() in _REQUEST_SKIP_HEADERS:
                continue
            headers[key] = f"{headers[key]}, {value}" if key in headers else value

        # Clients that did not ask for compression must not receive it.
        if not any(key.lower() == "accept-encoding" for key in headers):
            headers["Accept-Encoding"] = "identity"

        existing_prefix = headers.pop(PREFIX_HEADER, None)
        headers[PREFIX_HEADER] = f"{existing_prefix}, /" if existing_prefix else "/"

        client_ip = self.client_address[0]
        existing_for = headers.pop(FORWARDED_FOR_HEADER, None)
        headers[FORWARDED_FOR_HEADER] = f"{existing_for}, {client_ip}" if existing_for else client_ip
        return headers

    def _proxy(self) -> None:
        proxy = self.server
        url = proxy.target.url_for(self.path)
        body = self._read_body()

        try:
            resp = proxy.session.request(
                self.command,
                url,
                headers=self._forward_headers(),
                data=body or None,
                stream=True,
                allow_redirects=False,
                timeout=proxy.timeout,
            )
        except (requests.RequestException, ObsctlError) as e:
            log_warning(logger, LogEvent.PROXY, "upstream request failed", proxy.log_callback, url=url, err=e)
            self.send_error(HTTPStatus.BAD_GATEWAY, explain=str(e))
            return

        try:
            self.send_response(resp.status_code, resp.reason)
            for key, value in resp.headers.items():
                if key.lower() in HOP_HEADERS:
                    continue
                self.send_header(key, value)
            self.end_headers()

            if self.command != "HEAD":
                for chunk in resp.raw.stream(8192, decode_content=False):
                    if chunk:
                        self.wfile.write(chunk)
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            log_debug(logger, LogEvent.PROXY, "client disconnected", proxy.log_callback, url=url)
        finally:
            resp.close()

        log_debug(
            logger,
            LogEvent.PROXY,
            "proxied request",
            proxy.log_callback,
            method=self.command,
            url=url,
            status=resp.status_code,
        )

    def log_message(self, format: str, *args: object) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class ProxyServer(ThreadingHTTPServer):
    """HTTP server forwarding to a tenant-scoped API.

    Construction never opens a socket; :meth:`listen_and_serve` binds and
    blocks until :meth:`shutdown` is called from another thread.
    """

    daemon_threads = True

    def __init__(
        self,
        listen_addr: str,
        target: ProxyTarget,
        session: requests.Session,
        log_callback: Optional[LogCallback] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(parse_listen_addr(listen_addr), ProxyHandler, bind_and_activate=False)
        self.listen_addr = listen_addr
        self.target = target
        self.session = session
        self.log_callback = log_callback
        self.timeout = timeout
        self.state = ServerState.CONSTRUCTED
        self._state_lock = threading.Lock()

    def listen_and_serve(self, poll_interval: float = 0.5) -> None:
        """Bind the listen address and serve until shut down.

        Returns immediately if the server was shut down before it started.

        Raises:
            OSError: If the address cannot be bound
        """
        with self._state_lock:
            if self.state is not ServerState.CONSTRUCTED:
                return
            try:
                self.server_bind()
                self.server_activate()
            except OSError:
                self.server_close()
                self.state = ServerState.CLOSED
                raise
            self.state = ServerState.LISTENING

        log_info(
            logger,
            LogEvent.PROXY,
            "starting proxy server",
            self.log_callback,
            addr=self.listen_addr,
            resource=self.target.resource,
        )
        try:
            self.serve_forever(poll_interval)
        finally:
            self.server_close()
            with self._state_lock:
                self.state = ServerState.CLOSED

    def shutdown(self) -> None:
        """Stop serving; safe to call in any state."""
        with self._state_lock:
            if self.state is not ServerState.LISTENING:
                self.state = ServerState.CLOSED
                return
        super().shutdown()


def new_proxy_server(
    resource: str,
    listen_addr: str,
    store: Optional[ContextStore] = None,
    session: Optional[requests.Session] = None,
    now: Clock = utcnow,
    log_callback: Optional[LogCallback] = None,
) -> ProxyServer:
    """Build a proxy server for the current context.

    The context and credentials are resolved once, here; requests served
    later reuse the same session, whose token refreshes itself on expiry.

    Args:
        resource: Resource kind injected into the path (``metrics``, ``logs``...)
        listen_addr: ``host:port`` to listen on
        store: Context store; defaults to the store at the resolved config path
        session: Session to authenticate; a new one is created if omitted
        now: Clock used for token expiry checks
        log_callback: Optional observer for proxy events

    Raises:
        EmptyContextError: If no context is selected
        InvalidURLError: If the current API URL is not absolute
        ProviderDiscoveryError: If provider discovery fails
        TokenFetchError: If no token can be obtained
        ValueError: If ``listen_addr`` is malformed
    """
    if store is None:
        store = ContextStore(log_callback=log_callback)

    _, tenant, api = store.resolve_current()
    validate_absolute_url(api.url)
    parse_listen_addr(listen_addr)

    client = client_for_current(store, session=session, now=now, log_callback=log_callback)
    target = ProxyTarget.from_api_url(api.url, resource, tenant.tenant)
    return ProxyServer(listen_addr, target, client, log_callback=log_callback)


def run_proxy(
    server: ProxyServer,
    stop_event: Optional[threading.Event] = None,
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
) -> None:
    """Serve on a worker thread until interrupted, then shut down.

    Waits for SIGINT/SIGTERM (when called from the main thread) or for
    ``stop_event`` to be set.

    Raises:
        OSError: If the server cannot bind its address
    """
    stop = stop_event or threading.Event()
    errors: List[BaseException] = []

    def _serve() -> None:
        try:
            server.listen_and_serve()
        except OSError as e:
            errors.append(e)
        finally:
            stop.set()

    previous: Dict[int, Any] = {}
    if threading.current_thread() is threading.main_thread():
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, lambda signum, frame: stop.set())

    worker = threading.Thread(target=_serve, name="obsctl-proxy", daemon=True)
    worker.start()
    try:
        while not stop.wait(0.5):
            pass
    finally:
        for sig, handler in previous.items():
            if handler is not None:
                signal.signal(sig, handler)
        log_debug(logger, LogEvent.PROXY, "shutting down proxy server", server.log_callback)
        server.shutdown()
        worker.join(shutdown_timeout)

    if errors:
        raise errors[0]
