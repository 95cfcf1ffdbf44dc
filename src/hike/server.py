"""
=============================================================================
SERVER
=============================================================================

The object a host program embeds: holds the configuration and the dynamic
page registry, and runs the accept loop.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   host program                                                      │
    │       │  Server("127.0.0.1", 8080)                                  │
    │       │  .set_root_dir("site")        ← ConfigurationError if bad   │
    │       │  .set_debug(True)                                            │
    │       │  .register_dynamic_page(DynamicPage("/", [...]))            │
    │       │  .run()                       ← blocks                      │
    │       ▼                                                              │
    │   ┌──────────────┐   snapshot    ┌────────────────────┐             │
    │   │    Server    │ ────────────► │ ConnectionHandler  │ (immutable) │
    │   └──────┬───────┘               └─────────┬──────────┘             │
    │          │                                 │                         │
    │          ▼                                 ▼                         │
    │   ┌──────────────┐  Connection   ┌────────────────────┐             │
    │   │ SocketServer │ ────────────► │    ThreadPool      │             │
    │   └──────────────┘               └────────────────────┘             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

run() freezes the configuration into a ConnectionHandler. Every worker
reads that same frozen handler, so nothing has to be locked while
serving, and setters called after run() only take effect on the next
run().

=============================================================================
REQUEST LIFECYCLE (ONE PER CONNECTION)
=============================================================================

    1. READ        bytes from the socket (see Connection.read_request)
    2. PARSE       second whitespace token = URL; none → drop (or 400)
    3. RESOLVE     resolve_path(url, default_page, root_dir)
    4. LOAD        file bytes → 200, any failure → 404 + empty body
    5. LOG         access line (plus one per anchor), only when debug is on
    6. SUBSTITUTE  first DynamicPage with page.url == url, if any
    7. RESPOND     "HTTP/1.1 <status>\\r\\n\\r\\n" + body, then close

=============================================================================
"""

import logging
import os
import threading
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from .access_log import RequestLog, log_anchor, log_request
from .config import ConfigurationError, ServerConfig
from .core import Connection, ConnectionState, SocketServer, ThreadPool
from .handlers import DynamicPage, DynamicPageRegistry, StaticFileHandler, substitute_bytes
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    bad_request,
    internal_error,
    parse_request,
    service_unavailable,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionHandler:
    """
    Per-connection request logic, bound to one configuration snapshot.

    Attributes:
        config: Private copy of the server configuration.
        static: File resolver/loader for config.root_dir.
        pages: Frozen copy of the dynamic page registry.
    """

    config: ServerConfig
    static: StaticFileHandler
    pages: DynamicPageRegistry

    @classmethod
    def snapshot(cls, config: ServerConfig, pages: DynamicPageRegistry) -> "ConnectionHandler":
        config = replace(config)
        return cls(
            config=config,
            static=StaticFileHandler(
                root_dir=config.root_dir,
                default_page=config.default_page,
                confine_to_root=config.confine_to_root,
            ),
            pages=pages.snapshot(),
        )

    def handle(self, request: HTTPRequest) -> Tuple[str, HTTPResponse]:
        """
        Produce the response for one parsed request.

        Returns:
            (resolved filesystem path, response)
        """
        result = self.static.serve(request.url)
        response = result.response
        page = self.pages.lookup(request.url)

        if self.config.debug:
            log_request(
                RequestLog.create(
                    client=_format_address(request.client_address),
                    url=request.url,
                    path=result.path,
                    status=response.status,
                    dynamic=page is not None,
                ),
                self.config.log_format,
            )

        if page is not None:
            if self.config.debug:
                for anchor in page.anchors:
                    log_anchor(page.url, anchor.marker, anchor.callback, self.config.log_format)
            try:
                response.body = substitute_bytes(response.body, page.anchors)
            except Exception as e:
                logger.exception(f"Dynamic page {request.url!r} failed: {e}")
                response = internal_error()

        return result.path, response

    def process(self, conn: Connection) -> None:
        """
        Serve one connection from read to close (runs in a worker thread).

        Socket errors end this connection only; the connection is always
        closed on the way out.
        """
        with conn:
            try:
                raw_request = conn.read_request()
                if raw_request is None:
                    logger.debug(f"[{conn.id}] No data from {conn.peer}, dropping")
                    return

                try:
                    request = parse_request(raw_request, conn.address)
                except HTTPParseError as e:
                    if self.config.reject_malformed:
                        conn.send_response(bad_request().to_bytes())
                    else:
                        logger.debug(f"[{conn.id}] {e}, dropping")
                    return

                conn.state = ConnectionState.PROCESSING
                _, response = self.handle(request)
                conn.send_response(response.to_bytes())

            except OSError as e:
                logger.warning(f"[{conn.id}] Connection error: {e}")


class Server:
    """
    Embeddable file server with dynamic pages.

    =========================================================================
    USAGE
    =========================================================================

        server = Server("127.0.0.1", 8080)
        server.set_root_dir("site")
        server.set_debug(True)

        server.register_dynamic_page(DynamicPage(
            url="/status.html",
            anchors=[Anchor("{{TIME}}", lambda: time.strftime("%H:%M"))],
        ))

        @server.dynamic("/", "<!-- [uptime] -->")
        def uptime():
            return subprocess.run(["uptime"], capture_output=True, text=True).stdout

        server.run()  # Blocks until shutdown() or SIGINT/SIGTERM

    =========================================================================
    """

    def __init__(self, address: str = "127.0.0.1", port: int = 8080, config: Optional[ServerConfig] = None):
        """
        Args:
            address: IP address to bind to.
            port: TCP port. 0 lets the OS choose one (see address).
            config: Other settings. address and port above take precedence
                    over config.host and config.port.

        Raises:
            ConfigurationError: If config is invalid or its root_dir is not
                                an existing directory.
        """
        self._config = replace(config) if config is not None else ServerConfig()
        self._config.host = address
        self._config.port = port
        self._config.validate()
        if config is not None:
            _check_root_dir(self._config.root_dir)

        self._registry = DynamicPageRegistry()

        self._lock = threading.Lock()
        self._launched = threading.Event()
        self._stopping = False
        self._socket_server: Optional[SocketServer] = None
        self._thread_pool: Optional[ThreadPool] = None

    @classmethod
    def from_config(cls, config: ServerConfig) -> "Server":
        """Build a server whose address and port also come from config."""
        return cls(config.host, config.port, config)

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def set_debug(self, enabled: bool) -> "Server":
        """Turn the per-request access log line on or off."""
        self._config.debug = bool(enabled)
        return self

    def set_root_dir(self, path) -> "Server":
        """
        Serve files from path.

        Args:
            path: str or os.PathLike. Used verbatim as the prefix of every
                  resolved path, so "site" and "site/" behave differently
                  only in the extra slash.

        Raises:
            ConfigurationError: If path does not exist or is not a
                                directory. The previous root stays.
        """
        path = os.fspath(path)
        _check_root_dir(path)
        self._config.root_dir = path
        return self

    def set_default_page(self, name: str) -> "Server":
        """File name served for directory URLs (default "index.html")."""
        self._config.default_page = name
        return self

    def register_dynamic_page(self, page: DynamicPage) -> "Server":
        """
        Append a dynamic page.

        No duplicate check: if two pages share a URL the first one wins.
        Markers are not checked against any file.
        """
        self._registry.register(page)
        return self

    def dynamic(self, url: str, marker: str) -> Callable:
        """
        Decorator registering a function as an anchor.

            @server.dynamic("/status.html", "{{TIME}}")
            def now():
                return time.strftime("%H:%M")

        The anchor is appended to the first page registered for url, or
        to a new page if there is none. The function is returned unchanged.
        """
        def decorator(func: Callable[[], str]) -> Callable[[], str]:
            self._registry.anchor(url, marker, func)
            return func
        return decorator

    @property
    def debug(self) -> bool:
        return self._config.debug

    @property
    def root_dir(self) -> str:
        return self._config.root_dir

    @property
    def default_page(self) -> str:
        return self._config.default_page

    @property
    def dynamic_pages(self) -> Tuple[DynamicPage, ...]:
        return self._registry.pages

    @property
    def config(self) -> ServerConfig:
        """Copy of the current configuration."""
        return replace(self._config)

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port) while running, configured values otherwise."""
        if self._socket_server is not None and self._socket_server.is_running:
            return self._socket_server.address
        return (self._config.host, self._config.port)

    @property
    def is_running(self) -> bool:
        return self._socket_server is not None and self._socket_server.is_running

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self) -> None:
        """
        Serve until shutdown() is called or SIGINT/SIGTERM arrives.

        Raises:
            OSError: If the address cannot be bound.
            ConfigurationError: If the configuration became invalid.
        """
        self._config.validate()
        handler = ConnectionHandler.snapshot(self._config, self._registry)

        with self._lock:
            if self._stopping:
                self._stopping = False
                return
            self._socket_server = SocketServer(handler.config)
            self._thread_pool = ThreadPool(
                min_workers=handler.config.min_workers,
                max_workers=handler.config.max_workers,
                queue_size=handler.config.queue_size,
            )
            self._launched.set()

        thread_pool = self._thread_pool
        thread_pool.start()

        def dispatch(conn: Connection):
            if not thread_pool.submit(handler.process, args=(conn,)):
                logger.warning(f"[{conn.id}] Worker queue full, rejecting {conn.peer}")
                # Writing and closing can block; keep them off the accept thread.
                threading.Thread(
                    target=_reject,
                    args=(conn,),
                    name=f"hike-reject-{conn.id}",
                    daemon=True,
                ).start()

        logger.info(
            f"Serving {handler.config.root_dir!r} on "
            f"{handler.config.host}:{handler.config.port} "
            f"({len(handler.pages)} dynamic pages)"
        )

        try:
            self._socket_server.start(dispatch)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self) -> None:
        """Stop a running server from another thread. run() then returns."""
        with self._lock:
            if self._socket_server is None:
                self._stopping = True
                return
            self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until run() is listening. False on timeout."""
        if not self._launched.wait(timeout):
            return False
        socket_server = self._socket_server
        return socket_server is not None and socket_server.wait_until_ready(timeout)

    def _shutdown(self):
        logger.info("Shutting down server...")
        if self._thread_pool is not None:
            self._thread_pool.shutdown(wait=True, timeout=30.0)

        with self._lock:
            self._launched.clear()
            self._socket_server = None
            self._thread_pool = None
            self._stopping = False
        logger.info("Server stopped")


def _reject(conn: Connection) -> None:
    """Answer 503 and close; runs in its own short-lived thread."""
    with conn:
        conn.send_response(service_unavailable().to_bytes())


def _check_root_dir(path: str) -> None:
    if not os.path.exists(path):
        raise ConfigurationError(f"{path!r} does not exist. Not applied.")
    if not os.path.isdir(path):
        raise ConfigurationError(f"{path!r} is not a directory. Not applied.")


def _format_address(address) -> str:
    if not address or not address[0]:
        return "-"
    return f"{address[0]}:{address[1]}"
