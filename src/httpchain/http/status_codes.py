"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can produce, as an IntEnum.

Status codes are grouped by their first digit:

    1xx  Informational   (not used here)
    2xx  Success         leaf handlers
    3xx  Redirection     (not used here)
    4xx  Client error    rejections: 401, 404; parse errors: 400, 405, 413
    5xx  Server error    handler bugs (500), overload (503), bad version (505)

Because HTTPStatus is an IntEnum, members compare equal to plain ints:

    >>> HTTPStatus.NOT_FOUND == 404
    True

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """HTTP status codes with reason phrases."""

    # 2xx SUCCESS
    OK = 200                            # Leaf handler success
    CREATED = 201
    ACCEPTED = 202
    NO_CONTENT = 204

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400                   # Malformed request syntax
    UNAUTHORIZED = 401                  # Missing or invalid bearer token
    FORBIDDEN = 403
    NOT_FOUND = 404                     # No chain / path not allowed
    METHOD_NOT_ALLOWED = 405            # Unknown method in request line
    REQUEST_TIMEOUT = 408               # Client too slow to send request
    PAYLOAD_TOO_LARGE = 413             # Request exceeds max_request_size

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500         # A handler raised
    SERVICE_UNAVAILABLE = 503           # Worker pool saturated
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 404 Not Found
                         ─────────
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.ACCEPTED: "Accepted",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}


def phrase_for(status: int) -> str:
    """Reason phrase for any integer status, known or not."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown"
