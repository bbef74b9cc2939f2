"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

Logs one line per request that passes through it: method, path, status,
duration and, when a later stage short-circuited, why.

Place it where you want the log to start. In front of NotFound, it sees
every request, rejected or not; behind Auth, it only sees authenticated
traffic.

    127.0.0.1 - - [18/Oct/2026:12:00:00 +0000] "POST /post" 401 12 0.41ms authentication_failed

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from .base import Handler, Middleware
from ..http.request import Request
from ..http.response import Response


# Namespaced logger so access logs can be routed separately:
#   logging.getLogger("httpchain.access").addHandler(file_handler)
logger = logging.getLogger("httpchain.access")


@dataclass
class RequestLog:
    """Structured access-log entry."""

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    rejection: str
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "rejection": self.rejection or None,
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Apache-style line, with the rejection kind appended when present."""
        line = (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )
        if self.rejection:
            line += f" {self.rejection}"
        return line


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Args:
        next_handler: Handler to forward to (always forwards).
        log_format: "text" (Apache-like) or "json".
        include_request_id: Set an X-Request-ID header before forwarding.
        log_level: Level used for access lines.
        skip_paths: Exact paths not to log (e.g. "/health").
    """

    def __init__(
        self,
        next_handler: Handler,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(next_handler)
        if log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {log_format!r}")
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = frozenset(skip_paths or ())

    def __call__(self, request: Request, response: Response) -> None:
        request_id = uuid.uuid4().hex[:8]

        # Headers are still writable here: nothing downstream has committed yet.
        if self.include_request_id and not response.written:
            response.set_header("X-Request-ID", request_id)

        start_time = time.perf_counter()
        try:
            self.forward(request, response)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise
        duration_ms = (time.perf_counter() - start_time) * 1000

        if request.path in self.skip_paths:
            return

        entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            rejection=response.rejection.value if response.rejection else "",
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())
