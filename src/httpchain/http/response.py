"""
=============================================================================
HTTP RESPONSE
=============================================================================

The mutable output sink shared by every stage of one chain invocation.

=============================================================================
WRITE-ONCE DISCIPLINE
=============================================================================

Exactly one stage makes the terminal write decision for a request:

    ┌──────────────────────────────────────────────────────────────────────┐
    │  Stage               What it may do with the Response                │
    ├──────────────────────────────────────────────────────────────────────┤
    │  forwarding MW       set headers, then call next                     │
    │  short-circuit MW    write(status=401 / 404 ...), do NOT call next   │
    │  leaf handler        write(status=200, body)                         │
    └──────────────────────────────────────────────────────────────────────┘

Response.write() commits the status and body. A second write() (or a
header change after the commit) raises ResponseAlreadyWrittenError, so a
chain that writes twice fails loudly instead of "last write wins".

If nothing is written at all, the response keeps its defaults:
status 200 with an empty body.

=============================================================================
SERIALIZATION
=============================================================================

    HTTP/1.1 401 Unauthorized\\r\\n          ← status line
    Content-Type: text/plain; charset=utf-8\\r\\n
    Content-Length: 12\\r\\n                 ← auto-calculated
    Date: Sun, 18 Oct 2026 12:00:00 GMT\\r\\n ← auto-added
    Server: httpchain/1.0\\r\\n               ← auto-added
    \\r\\n
    Unauthorized

=============================================================================
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union
import json

from .status_codes import HTTPStatus, phrase_for
from ..errors import Rejection, ResponseAlreadyWrittenError


TEXT_PLAIN = "text/plain; charset=utf-8"
APPLICATION_JSON = "application/json"


class Response:
    """
    Write-once HTTP response.

    Usage:
        response = Response()
        response.set_header("X-Request-ID", "abc123")   # before commit
        response.write("Middlewares in Go!")             # commit 200
        response.write("again")                          # raises

    Attributes:
        status:    Status code, 200 until something is written.
        headers:   Response headers (case preserved).
        body:      Response body bytes.
        rejection: Why a stage short-circuited, or None.
    """

    def __init__(self, version: str = "HTTP/1.1"):
        self.status: int = HTTPStatus.OK
        self.headers: Dict[str, str] = {}
        self.body: bytes = b""
        self.version = version
        self.rejection: Optional[Rejection] = None
        self._written = False

    def __repr__(self) -> str:
        return f"<Response {int(self.status)} written={self._written} body={self.body[:40]!r}>"

    @property
    def written(self) -> bool:
        """True once a terminal write decision was committed."""
        return self._written

    # =========================================================================
    # WRITING
    # =========================================================================

    def set_header(self, name: str, value: str) -> "Response":
        """
        Set a header. Allowed only before the response is committed.

        Returns self for chaining.
        """
        if self._written:
            raise ResponseAlreadyWrittenError(
                f"Cannot set header {name!r}: response already written"
            )
        self.headers[name] = value
        return self

    def write(
        self,
        body: Union[str, bytes] = b"",
        status: int = HTTPStatus.OK,
        content_type: Optional[str] = None,
    ) -> None:
        """
        Commit the status and body. May be called once.

        Args:
            body: Response body; str is encoded as UTF-8.
            status: HTTP status code.
            content_type: Content-Type header. Defaults to text/plain for
                          str bodies; bytes bodies get none unless given.

        Raises:
            ResponseAlreadyWrittenError: If another stage already wrote.
        """
        if self._written:
            raise ResponseAlreadyWrittenError(
                f"Response already written with status {int(self.status)}; "
                f"refusing second write with status {int(status)}"
            )

        if isinstance(body, str):
            body = body.encode("utf-8")
            content_type = content_type or TEXT_PLAIN

        if content_type:
            self.headers["Content-Type"] = content_type

        self.status = _as_status(status)
        self.body = body
        self._written = True

    def write_json(self, data: Any, status: int = HTTPStatus.OK) -> None:
        """Commit a JSON body."""
        self.write(json.dumps(data).encode("utf-8"), status, APPLICATION_JSON)

    def reject(self, kind: Rejection) -> None:
        """
        Short-circuit: commit the status and plain-text body for a rejection.

        The kind is recorded on the response for logging and tests.
        """
        self.write(kind.body, kind.status, TEXT_PLAIN)
        self.rejection = kind

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    @property
    def status_line(self) -> str:
        """Example: "HTTP/1.1 200 OK"."""
        return f"{self.version} {int(self.status)} {phrase_for(self.status)}"

    def to_bytes(self, server_name: str = "httpchain/1.0", include_body: bool = True) -> bytes:
        """
        Serialize for socket.sendall().

        Adds Content-Length, Date and Server when the handlers did not.
        With include_body=False (HEAD) only the head is returned, but
        Content-Length still describes the body.
        """
        response_headers = dict(self.headers)
        response_headers.setdefault("Content-Length", str(len(self.body)))
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        head = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return head + self.body if include_body else head


def _as_status(status: int) -> int:
    """Known codes become HTTPStatus members; unknown ones stay ints."""
    try:
        return HTTPStatus(status)
    except ValueError:
        return int(status)


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231), always in GMT.

    Example: Sun, 18 Oct 2026 12:00:00 GMT
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE WRITERS
# =============================================================================
#
# One-liners for the responses this pipeline produces:
#
#     ok(response, "hello")
#     not_found(response)
#     unauthorized(response)
#
# =============================================================================

def ok(response: Response, body: Union[str, bytes, dict, list] = "") -> None:
    """Write a 200 OK. dict/list bodies are sent as JSON."""
    if isinstance(body, (dict, list)):
        response.write_json(body)
    else:
        response.write(body, HTTPStatus.OK)


def json_ok(response: Response, data: Any) -> None:
    response.write_json(data, HTTPStatus.OK)


def not_found(response: Response, kind: Rejection = Rejection.ROUTE_NOT_FOUND) -> None:
    """Write the default 404 body."""
    response.reject(kind)


def unauthorized(response: Response) -> None:
    """Write 401 with the plain-text body "Unauthorized"."""
    response.reject(Rejection.AUTHENTICATION_FAILED)


def internal_error(response: Response, message: str = "Internal Server Error") -> None:
    """
    Write a 500. Keep the message generic; details belong in the log.
    """
    response.write(message, HTTPStatus.INTERNAL_SERVER_ERROR)


def error_response(status: int, message: str) -> Response:
    """Build a committed plain-text error response outside any chain."""
    response = Response()
    response.write(message, status)
    return response
