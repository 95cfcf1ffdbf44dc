"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: read the request, write the response,
close. Exactly one request per connection; there is no keep-alive.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        "GET /index.html HTTP/1.1\\r\\nHost: localhost\\r\\n\\r\\n"

    Server might receive:
        First recv():  "GET /ind"            (incomplete!)
        Second recv(): "ex.html HTTP/1.1..." (rest)

A single recv() is therefore NOT guaranteed to contain the URL. Two read
strategies are available:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       READ STRATEGIES                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HEADER-TERMINATED (default)                                       │
    │     while no blank line yet:                                        │
    │         recv(buffer_size) → buffer                                  │
    │     stop early on: EOF, timeout, max_request_size                   │
    │                                                                      │
    │   SINGLE READ (single_read=True)                                    │
    │     recv(buffer_size) once, whatever arrives is the request         │
    │     a request line longer than buffer_size is cut short             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Only the request line is ever used, so the header-terminated loop is just
a reliable way to make sure the first line has fully arrived.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──────► READING ──────► PROCESSING ──────► WRITING
     │             │                                  │
     │             ▼                                  ▼
     └─────────► CLOSING ◄────────────────────────────┘
                    │
                    ▼
                  CLOSED

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)

HEADER_TERMINATORS = (b"\r\n\r\n", b"\n\n")

# Bounds on discarding client bytes before close(), whichever comes first.
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states, for logging and debugging."""
    NEW = "new"                # Just accepted
    READING = "reading"        # Reading request bytes
    PROCESSING = "processing"  # Resolving, loading, substituting
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short random identifier for log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        buffer_size: Bytes requested per recv().
        timeout: Socket timeout in seconds, None for blocking forever.
        max_request_size: Bytes buffered at most while looking for the
                          end of the headers.
        single_read: Read exactly once instead of looping.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 512
    timeout: Optional[float] = 30.0
    max_request_size: int = 64 * 1024
    single_read: bool = False

    def __post_init__(self):
        # The listening socket polls with a timeout; accepted sockets may
        # inherit it, so set blocking mode explicitly.
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def peer(self) -> str:
        """Client address as "ip:port"."""
        return f"{self.client_ip}:{self.client_port}"

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read the request bytes.

        Returns:
            The bytes received, or None if the client sent nothing before
            closing or timing out.
        """
        self.state = ConnectionState.READING

        if self.single_read:
            data = self._recv()
            return data or None

        buffer = b""
        while not _has_header_end(buffer):
            try:
                chunk = self._recv()
            except socket.timeout:
                logger.debug(f"[{self.id}] Read timeout after {len(buffer)} bytes")
                break

            if not chunk:
                break  # Client closed its side

            buffer += chunk
            if len(buffer) >= self.max_request_size:
                logger.debug(f"[{self.id}] Request exceeds {self.max_request_size} bytes, truncating")
                buffer = buffer[:self.max_request_size]
                break

        return buffer or None

    def _recv(self) -> bytes:
        """
        Receive one chunk.

        Returns:
            Received bytes, or b"" if the connection was reset.

        Raises:
            socket.timeout: If nothing arrives within the timeout. In
                            single-read mode this is swallowed here.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""
        except socket.timeout:
            if self.single_read:
                return b""
            raise

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes.

        sendall() keeps writing until every byte is handed to the kernel.

        Returns:
            True if sent, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection in both directions.

        1. shutdown(SHUT_WR): send FIN, the client sees end of body
        2. drain: read and discard what the client still sends, so unread
           request bytes do not turn the close into a reset. Stops at EOF,
           after DRAIN_TIMEOUT seconds in total or after DRAIN_LIMIT bytes
        3. close(): release the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        self._drain()

        try:
            self.socket.close()
        except OSError as e:
            logger.debug(f"[{self.id}] Close failed: {e}")

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Closed after {self.age:.3f}s")

    def _drain(self):
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0
        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Includes socket.timeout

        if drained:
            logger.debug(f"[{self.id}] Discarded {drained} unread bytes")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _has_header_end(buffer: bytes) -> bool:
    return any(terminator in buffer for terminator in HEADER_TERMINATORS)
