"""
=============================================================================
HTTP REQUEST
=============================================================================

The Request object every stage of a chain receives, and the parser that
builds it from raw HTTP/1.1 bytes (RFC 7230).

=============================================================================
IMMUTABILITY
=============================================================================

A request is handed from the outermost middleware down to the leaf as
ONE shared reference:

    NotFoundMiddleware ──► AuthMiddleware ──► Leaf
           │                     │              │
           └──────── same Request object ───────┘

No stage may change what a later stage sees. The dataclass is frozen and
headers are exposed through a read-only mapping, so an attempt to mutate
raises instead of silently leaking state down the chain.

=============================================================================
REQUEST ANATOMY
=============================================================================

    GET /post?draft=1 HTTP/1.1\r\n         ← request line
    Host: localhost:8080\r\n               ← headers (case-insensitive)
    Authorization: Bearer eyJhbGciOi...\r\n
    Content-Length: 13\r\n
    \r\n                                   ← empty line
    {"title":"x"}                          ← body (Content-Length bytes)

=============================================================================
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional, Dict, Mapping
from urllib.parse import parse_qs
import re


class HTTPParseError(Exception):
    """
    Raised when raw request bytes cannot be parsed.

    Carries the status code the server should answer with:

        400 Bad Request                 - Malformed syntax
        405 Method Not Allowed          - Unknown method
        413 Payload Too Large           - Request exceeds size limit
        505 HTTP Version Not Supported  - Unknown HTTP version
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def _freeze_headers(headers: Mapping[str, str]) -> Mapping[str, str]:
    """Lowercase header names and wrap them in a read-only view."""
    return MappingProxyType({name.lower(): value for name, value in headers.items()})


@dataclass(frozen=True)
class Request:
    """
    A parsed, read-only HTTP request.

    Attributes:
        method:         HTTP method (GET, POST, ...)
        path:           Request path WITHOUT the query string. Routing
                        matches this string exactly.
        headers:        Read-only mapping with lowercase names.
        body:           Raw body bytes.
        version:        "HTTP/1.1" or "HTTP/1.0".
        query_params:   Parsed query string, name → list of values.
        client_address: (ip, port) of the peer, for logging.
    """

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"
    query_params: Mapping[str, list] = field(default_factory=dict)
    client_address: tuple[str, int] = ("", 0)

    def __post_init__(self):
        # frozen=True blocks normal assignment; normalise once at construction.
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", _freeze_headers(self.headers))
        object.__setattr__(self, "query_params", MappingProxyType(dict(self.query_params)))

    # =========================================================================
    # HEADER ACCESS
    # =========================================================================

    def get_header(self, name: str, default: str = "") -> str:
        """
        Case-insensitive header lookup.

        Example:
            request.get_header("Authorization")
            request.get_header("authorization")   # same value
        """
        return self.headers.get(name.lower(), default)

    @property
    def authorization(self) -> str:
        """The raw Authorization header, or "" when absent."""
        return self.get_header("authorization")

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type without parameters (``; charset=...``)."""
        ct = self.get_header("content-type").split(";")[0].strip().lower()
        return ct or None

    @property
    def content_length(self) -> int:
        try:
            return int(self.get_header("content-length", "0"))
        except ValueError:
            return 0

    @property
    def user_agent(self) -> str:
        return self.get_header("user-agent")

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether the connection should stay open after the response.

        HTTP/1.1 keeps alive unless "Connection: close".
        HTTP/1.0 closes unless "Connection: keep-alive".
        """
        connection = self.get_header("connection").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter."""
        values = self.query_params.get(name, [])
        return values[0] if values else default


class RequestParser:
    """
    Parses raw HTTP request bytes into Request objects.

        Raw bytes
            │
            ├──► 1. size check                  (413)
            ├──► 2. find \\r\\n\\r\\n separator     (400)
            ├──► 3. request line                (400 / 405 / 505)
            ├──► 4. headers, lowercased
            ├──► 5. body by Content-Length      (400 if short)
            ▼
        Request
    """

    VALID_METHODS = {
        "GET",
        "POST",
        "PUT",
        "DELETE",
        "PATCH",
        "HEAD",
        "OPTIONS",
        "TRACE",
        "CONNECT",
    }

    # METHOD SP REQUEST-URI SP HTTP-VERSION
    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")

    # field-name ":" OWS field-value
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(self, data: bytes, client_address: tuple[str, int] = ("", 0)) -> Request:
        """
        Parse one complete HTTP request.

        Args:
            data: Raw request bytes (headers and full body).
            client_address: Peer (ip, port), kept for access logs.

        Returns:
            The parsed Request.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(f"Request too large: {len(data)} bytes", status_code=413)

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")
        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length header")
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return Request(
            method=method,
            path=path,
            headers=headers,
            body=body[:content_length],
            version=version,
            query_params=query_params,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, Dict[str, list], str]:
        """
        Split "GET /post?draft=1 HTTP/1.1" into its parts.

        Returns:
            (method, path, query_params, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(f"Unsupported HTTP version: {version}", status_code=505)

        # The path is kept exactly as sent; routes match it as a plain string.
        if uri.startswith(("http://", "https://")):
            authority_and_path = uri.split("://", 1)[1]
            slash = authority_and_path.find("/")
            uri = authority_and_path[slash:] if slash != -1 else "/"

        path, _, query = uri.partition("?")
        query_params = parse_qs(query, keep_blank_values=True)

        return method, path, query_params, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a dict with lowercase names.

        - Obsolete line folding (continuation lines starting with
          whitespace) is appended to the previous header.
        - Repeated headers are joined with ", ".
        - Malformed lines are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 10 * 1024 * 1024,
) -> Request:
    """Parse raw bytes with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
