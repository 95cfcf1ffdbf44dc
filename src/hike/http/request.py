"""
=============================================================================
REQUEST-TARGET EXTRACTION
=============================================================================

This server interprets exactly ONE thing from the bytes a client sends:
the second whitespace-separated token, which is the URL path.

    "GET /status HTTP/1.1\r\nHost: localhost\r\n\r\n"
     ─┬─ ───┬───
      │     │
      │     └── token 1: the request path (used)
      └──────── token 0: the method (kept for logging, never checked)

Everything else (version, headers, body) is ignored. There is no
percent-decoding and no query-string handling: "/a%20b?x=1" is looked up
on disk literally.

=============================================================================
WHY SO LITTLE?
=============================================================================

The server only ever answers GET-shaped questions ("give me this file"),
and always closes after one response. Headers would only matter for
keep-alive, content negotiation or bodies, none of which are supported.

=============================================================================
"""

from dataclasses import dataclass
from typing import Tuple


class HTTPParseError(Exception):
    """Raised when no request path can be extracted."""


@dataclass(frozen=True)
class HTTPRequest:
    """
    The part of a request this server cares about.

    Attributes:
        method: First token, usually "GET". Not validated.
        url: Second token, the exact string used for path resolution
             and dynamic page lookup.
        client_address: Peer (ip, port) for access logging.
    """

    method: str
    url: str
    client_address: Tuple[str, int] = ("", 0)


def parse_request(
    data: bytes,
    client_address: Tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """
    Extract the request path from raw request bytes.

    The bytes are decoded as UTF-8 with invalid sequences replaced, then
    split on any run of whitespace. The split spans the whole buffer, not
    just the first line.

    Args:
        data: Bytes read from the client.
        client_address: Peer address, copied onto the request.

    Returns:
        HTTPRequest with method and url filled in.

    Raises:
        HTTPParseError: If fewer than two tokens are present.
    """
    tokens = data.decode("utf-8", errors="replace").split()
    if len(tokens) < 2:
        raise HTTPParseError(f"No request path in {len(data)} bytes")

    return HTTPRequest(method=tokens[0], url=tokens[1], client_address=client_address)
