"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing underneath the server:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SOCKET SERVER   bind, listen, accept loop, signal-driven shutdown  │
    └─────────────────────────────────┬───────────────────────────────────┘
                                      │ one Connection per client
                                      ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  THREAD POOL     bounded workers + bounded queue (backpressure)     │
    └─────────────────────────────────┬───────────────────────────────────┘
                                      │ worker runs the handler
                                      ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  CONNECTION      read request bytes, send response, close          │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
