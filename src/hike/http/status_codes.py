"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The handful of status codes this server can answer with.

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ OK                  - File found, body follows            │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  400   │ Bad Request         - No path token (opt-in, see config)  │
    │  404   │ Not Found           - Any failure to read the file        │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  500   │ Internal Error      - A dynamic page callback raised      │
    │  503   │ Service Unavailable - Worker queue is full                │
    └────────┴───────────────────────────────────────────────────────────┘

Missing, unreadable and is-a-directory are all the same 404: the client is
never told WHY a file could not be served.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200

    BAD_REQUEST = 400
    NOT_FOUND = 404

    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def status_text(self) -> str:
        """Code and phrase as they appear on the status line ("200 OK")."""
        return f"{int(self)} {self.phrase}"

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}
