"""
=============================================================================
HTTP WIRE FORMAT
=============================================================================

The smallest slice of HTTP/1.x this server speaks:

    request.py       - pulls the URL out of the request line
    response.py      - writes "HTTP/1.1 <status>\\r\\n\\r\\n<body>"
    status_codes.py  - the status codes that can appear in that line

=============================================================================
"""

from .request import HTTPRequest, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ok,
    not_found,
    bad_request,
    internal_error,
    service_unavailable,
)
from .status_codes import HTTPStatus

__all__ = [
    "HTTPRequest",
    "HTTPParseError",
    "parse_request",
    "HTTPResponse",
    "HTTPStatus",
    "ok",
    "not_found",
    "bad_request",
    "internal_error",
    "service_unavailable",
]
