"""
=============================================================================
RESPONSE FRAMING
=============================================================================

Every response this server writes has the same shape:

    HTTP/1.1 200 OK\r\n          ← Status line
    \r\n                         ← Empty line, no headers at all
    <raw file bytes>             ← Body, possibly after marker substitution

There is no Content-Length, no Content-Type and no Connection header.
The client learns where the body ends because the server closes the
connection right after writing it.

=============================================================================
"""

from dataclasses import dataclass

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    A status and a body, nothing else.

        HTTPResponse(HTTPStatus.OK, b"<h1>hi</h1>").to_bytes()
        → b"HTTP/1.1 200 OK\\r\\n\\r\\n<h1>hi</h1>"
    """

    status: HTTPStatus = HTTPStatus.OK
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """Status line without the trailing CRLF, e.g. "HTTP/1.1 404 Not Found"."""
        return f"{self.version} {self.status.status_text}"

    def to_bytes(self) -> bytes:
        """Serialize to the exact bytes written to the socket."""
        return f"{self.status_line}\r\n\r\n".encode("ascii") + self.body


def ok(body: bytes) -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.OK, body=body)


def not_found() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.NOT_FOUND)


def bad_request() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.BAD_REQUEST)


def internal_error() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.INTERNAL_SERVER_ERROR)


def service_unavailable() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.SERVICE_UNAVAILABLE)
