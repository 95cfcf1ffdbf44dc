"""
=============================================================================
ACCESS LOGGING
=============================================================================

With debug enabled the server writes one line per request to the
"hike.access" logger:

    text:  127.0.0.1:51544: /status = site/status/index.html => 200 OK
    json:  {"client": "127.0.0.1:51544", "url": "/status", ...}

When the URL is a dynamic page, each of its anchors follows:

    text:  /status: anchor '{{TIME}}' -> clock

The library only EMITS records. Where they go (stderr, a file, a log
shipper) is the host program's decision; setup_logging() is a
convenience for hosts that have no logging setup of their own.

=============================================================================
"""

import json
import logging
from dataclasses import dataclass, asdict

from .http.status_codes import HTTPStatus


access_logger = logging.getLogger("hike.access")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class RequestLog:
    """
    One served request.

    Attributes:
        client: Peer address as "ip:port".
        url: Requested URL.
        path: Filesystem path it resolved to.
        status: Status code sent.
        status_text: Status line text, e.g. "404 Not Found".
        dynamic: Whether a dynamic page matched the URL.
    """

    client: str
    url: str
    path: str
    status: int
    status_text: str
    dynamic: bool = False

    @classmethod
    def create(cls, client: str, url: str, path: str, status: HTTPStatus, dynamic: bool = False) -> "RequestLog":
        return cls(
            client=client,
            url=url,
            path=path,
            status=int(status),
            status_text=status.status_text,
            dynamic=dynamic,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def to_text(self) -> str:
        return f"{self.client}: {self.url} = {self.path} => {self.status_text}"

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def log_request(entry: RequestLog, log_format: str = "text") -> None:
    message = entry.to_json() if log_format == "json" else entry.to_text()
    access_logger.info(message)


def log_anchor(url: str, marker: str, callback, log_format: str = "text") -> None:
    """One line per anchor of a matched dynamic page, before substitution."""
    name = getattr(callback, "__qualname__", None) or repr(callback)
    if log_format == "json":
        message = json.dumps({"url": url, "marker": marker, "callback": name})
    else:
        message = f"{url}: anchor {marker!r} -> {name}"
    access_logger.info(message)


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger for a host program.

    Args:
        level: Level name. Unknown names fall back to INFO.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    logging.getLogger("hike").setLevel(numeric_level)
