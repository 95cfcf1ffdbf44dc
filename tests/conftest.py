"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Callable, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hike import Server, ServerConfig


INDEX_HTML = b"<html><body><h1>Home</h1></body></html>\n"


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """
    A served directory:

        site/
        ├── index.html
        ├── hello.txt
        ├── docs/index.html
        └── status/index.html      (contains {{TIME}} twice)

    plus tmp_path/secret.txt OUTSIDE the root.
    """
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "hello.txt").write_bytes(b"hello, world\n")

    (root / "docs").mkdir()
    (root / "docs" / "index.html").write_bytes(b"<p>docs</p>")

    (root / "status").mkdir()
    (root / "status" / "index.html").write_bytes(b"Time: {{TIME}}\nTime: {{TIME}}\n")

    (tmp_path / "secret.txt").write_bytes(b"top secret")
    return root


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration: small pool, short timeouts."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
    )


def send_raw(port: int, data: bytes, timeout: float = 5.0) -> bytes:
    """Send data, then read until the server closes the connection."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        if data:
            s.sendall(data)
        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def split_response(raw: bytes) -> Tuple[bytes, bytes]:
    """Split a response into (status line, body)."""
    head, separator, body = raw.partition(b"\r\n\r\n")
    assert separator, f"No header terminator in {raw!r}"
    return head, body


class RunningServer:
    """Runs a Server in a background thread."""

    def __init__(self, server: Server):
        self.server = server
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self) -> "RunningServer":
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError(f"Server failed to start: {self.error!r}")
        return self

    def _run(self):
        try:
            self.server.run()
        except BaseException as e:
            self.error = e
            raise

    def get(self, url: str) -> Tuple[bytes, bytes]:
        raw = send_raw(self.port, f"GET {url} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())
        return split_response(raw)

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def start_server() -> Generator[Callable[[Server], RunningServer], None, None]:
    """Start servers in background threads; all are stopped at teardown."""
    running = []

    def _start(server: Server) -> RunningServer:
        srv = RunningServer(server).start()
        running.append(srv)
        return srv

    yield _start

    for srv in running:
        srv.stop()


@pytest.fixture
def server(site_root: Path, config: ServerConfig) -> Server:
    """Unstarted server rooted at site_root."""
    srv = Server(config.host, config.port, config)
    srv.set_root_dir(site_root)
    return srv
