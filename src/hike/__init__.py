"""
=============================================================================
HIKE - Embeddable HTTP Server With Dynamic Pages
=============================================================================

A small HTTP/1.x server meant to live INSIDE another Python program. It
serves files from a directory and can rewrite markers in those files with
the output of Python callables registered by the host.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   site/index.html            host program                           │
    │   ───────────────            ────────────                           │
    │   <p>Load: {{LOAD}}</p>      server = Server("0.0.0.0", 8080)       │
    │                              server.set_root_dir("site")            │
    │                              @server.dynamic("/", "{{LOAD}}")       │
    │                              def load(): return read_loadavg()      │
    │                              server.run()                            │
    │                                                                      │
    │   GET / HTTP/1.1  ─────►  HTTP/1.1 200 OK\\r\\n\\r\\n               │
    │                           <p>Load: 0.42 0.37 0.30</p>               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHAT IT DELIBERATELY DOES NOT DO
=============================================================================

- Parse headers, keep connections alive, chunk or negotiate content
- Terminate TLS
- Read request bodies
- Route by pattern: dynamic pages match the URL string exactly
- Send Content-Type (or any header at all)

=============================================================================
PACKAGE LAYOUT
=============================================================================

    hike/
    ├── server.py          Server, ConnectionHandler
    ├── config.py          ServerConfig, ConfigurationError
    ├── access_log.py      RequestLog, setup_logging
    ├── core/              SocketServer, Connection, ThreadPool
    ├── http/              request-line parsing, response framing, status codes
    └── handlers/          path resolution + file loading, marker substitution

=============================================================================
"""

__version__ = "0.3.0"

from .config import ServerConfig, ConfigurationError
from .server import Server, ConnectionHandler
from .handlers import Anchor, DynamicPage, DynamicPageRegistry, resolve_path, substitute
from .http import HTTPStatus
from .access_log import setup_logging

__all__ = [
    "Server",
    "ConnectionHandler",
    "ServerConfig",
    "ConfigurationError",
    "Anchor",
    "DynamicPage",
    "DynamicPageRegistry",
    "resolve_path",
    "substitute",
    "HTTPStatus",
    "setup_logging",
    "__version__",
]
