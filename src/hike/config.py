"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the embeddable server.

=============================================================================
WHO OWNS CONFIGURATION?
=============================================================================

hike is a LIBRARY. The host program decides where settings come from:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION SOURCES                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. Code (the common case)                                         │
    │      └── Server("127.0.0.1", 8080).set_root_dir("site")            │
    │                                                                      │
    │   2. A ServerConfig built by the host                               │
    │      └── Server("0.0.0.0", 80, ServerConfig(max_workers=32))       │
    │                                                                      │
    │   3. Environment variables, if the host opts in                     │
    │      └── Server.from_config(ServerConfig.from_env())               │
    │                                                                      │
    │   4. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The server never reads the environment by itself.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


class ConfigurationError(ValueError):
    """
    Raised when a configuration value is rejected.

    The previous value is always left in place, so a host program can
    catch this, report it and keep going with the old setting.
    """


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """
    Configuration for the server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    REQUEST HANDLING
    - single_read, max_request_size, reject_malformed

    CONTENT
    - root_dir, default_page, confine_to_root, debug

    THREAD POOL
    - min_workers, max_workers, queue_size

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind to. "0.0.0.0" listens on every interface."""

    port: int = 8080
    """TCP port to listen on."""

    backlog: int = 128
    """Maximum number of connections queued by the kernel before accept()."""

    buffer_size: int = 512
    """
    Bytes requested per recv() call.
    With single_read enabled this is also the whole request budget:
    anything past it is never seen.
    """

    timeout: Optional[float] = 30.0
    """
    Per-connection socket timeout in seconds.
    None = block forever (a silent client holds its worker indefinitely).
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST HANDLING
    # ─────────────────────────────────────────────────────────────────────

    single_read: bool = False
    """
    Read the request with exactly one recv() of buffer_size bytes.
    False = keep reading until the blank line that ends the headers.
    """

    max_request_size: int = 64 * 1024
    """Upper bound on bytes buffered while looking for the end of headers."""

    reject_malformed: bool = False
    """
    Answer requests without a path token with 400 Bad Request.
    False = drop the connection without writing anything.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."
    """Directory files are served from. Prefixed verbatim to the URL."""

    default_page: str = "index.html"
    """File name appended when a URL names a directory."""

    confine_to_root: bool = True
    """
    Answer 404 for resolved paths that land outside root_dir
    (e.g. GET /../../etc/passwd). False serves them.
    """

    debug: bool = False
    """Log one access line per request (address, URL, path, status)."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    """Worker threads created when the server starts."""

    max_workers: int = 16
    """Hard cap on worker threads, i.e. on connections handled at once."""

    queue_size: int = 100
    """
    Accepted connections allowed to wait for a worker.
    Beyond this the client gets 503 Service Unavailable.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Level used by setup_logging() (DEBUG, INFO, WARNING, ...)."""

    log_format: str = "text"
    """Access line format: 'text' or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HIKE_HOST          Bind address (default: 127.0.0.1)
        HIKE_PORT          TCP port (default: 8080)
        HIKE_ROOT_DIR      Served directory (default: .)
        HIKE_DEFAULT_PAGE  Directory index file (default: index.html)
        HIKE_DEBUG         1/true/yes/on enables access lines
        HIKE_WORKERS       Max worker threads (default: 16); also caps
                           min_workers
        HIKE_TIMEOUT       Socket timeout in seconds (default: 30)
        HIKE_LOG_LEVEL     Logging level (default: INFO)
        HIKE_LOG_FORMAT    text or json (default: text)

        =====================================================================
        """
        workers = int(os.getenv("HIKE_WORKERS", "16"))
        return cls(
            host=os.getenv("HIKE_HOST", "127.0.0.1"),
            port=int(os.getenv("HIKE_PORT", "8080")),
            root_dir=os.getenv("HIKE_ROOT_DIR", "."),
            default_page=os.getenv("HIKE_DEFAULT_PAGE", "index.html"),
            debug=_env_flag("HIKE_DEBUG"),
            # A small HIKE_WORKERS also lowers the starting pool size.
            min_workers=min(cls.min_workers, workers),
            max_workers=workers,
            timeout=float(os.getenv("HIKE_TIMEOUT", "30")),
            log_level=os.getenv("HIKE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HIKE_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called when the server is created and again before it starts
        serving, so a bad value fails loudly instead of on first request.

        Raises:
            ConfigurationError: On the first invalid value found.
        """
        # Port 0 asks the OS for a free port.
        if not 0 <= self.port < 65536:
            raise ConfigurationError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ConfigurationError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ConfigurationError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ConfigurationError("queue_size must be >= 1")

        if self.buffer_size < 1:
            raise ConfigurationError("buffer_size must be >= 1")

        if self.max_request_size < self.buffer_size:
            raise ConfigurationError("max_request_size must be >= buffer_size")

        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError("timeout must be > 0")

        if self.log_format not in ("text", "json"):
            raise ConfigurationError(
                f"Invalid log_format: {self.log_format!r}. Must be 'text' or 'json'."
            )
