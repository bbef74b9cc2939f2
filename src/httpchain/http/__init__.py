"""
HTTP wire types: the read-only Request, the write-once Response, and
status codes. Nothing in here knows about chains or routing.
"""

from .status_codes import HTTPStatus
from .request import Request, RequestParser, HTTPParseError, parse_request
from .response import (
    Response,
    ok,
    json_ok,
    not_found,
    unauthorized,
    internal_error,
    error_response,
    format_http_date,
)

__all__ = [
    "HTTPStatus",
    "Request",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "Response",
    "ok",
    "json_ok",
    "not_found",
    "unauthorized",
    "internal_error",
    "error_response",
    "format_http_date",
]
