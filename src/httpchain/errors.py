"""
=============================================================================
ERRORS AND REJECTIONS
=============================================================================

Two very different kinds of "failure" live in this package:

1. REJECTIONS - a stage refuses a request (unknown route, path not in the
   allow-list, bad token). These are NOT exceptions. They are data: a
   status code and body written to the response by the stage that
   rejected. Nothing is raised to the dispatcher.

2. EXCEPTIONS - programming or configuration mistakes (writing a response
   twice, registering a route after startup, invalid config). These are
   raised, because no HTTP client caused them.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Rejection              Status   Written by                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │   ROUTE_NOT_FOUND        404      Dispatcher (no chain for path)     │
    │   PATH_NOT_ALLOWED       404      NotFoundMiddleware                 │
    │   AUTHENTICATION_FAILED  401      AuthMiddleware                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import Enum


class Rejection(Enum):
    """
    Why a request was refused before reaching its leaf handler.

    Each member maps to the status code and the plain-text body that
    is written to the response.
    """

    ROUTE_NOT_FOUND = "route_not_found"
    PATH_NOT_ALLOWED = "path_not_allowed"
    AUTHENTICATION_FAILED = "authentication_failed"

    @property
    def status(self) -> int:
        return _REJECTION_RESPONSES[self][0]

    @property
    def body(self) -> str:
        return _REJECTION_RESPONSES[self][1]


# Default server body for every 404, whichever layer wrote it.
_NOT_FOUND_BODY = "404 page not found"

_REJECTION_RESPONSES = {
    Rejection.ROUTE_NOT_FOUND: (404, _NOT_FOUND_BODY),
    Rejection.PATH_NOT_ALLOWED: (404, _NOT_FOUND_BODY),
    Rejection.AUTHENTICATION_FAILED: (401, "Unauthorized"),
}


class HTTPChainError(Exception):
    """Base class for all exceptions raised by httpchain."""


class ResponseAlreadyWrittenError(HTTPChainError):
    """
    Raised when a stage writes to a response that was already committed.

    Only one stage may make the terminal write decision for a request.
    A second write is a bug in the chain, not a client error.
    """


class RouterFrozenError(HTTPChainError):
    """Raised when a route is registered after the router was frozen."""


class TokenVerificationError(HTTPChainError):
    """
    Raised by a token verifier when a token cannot be accepted.

    The message may describe the failure (expired, bad signature...),
    but it is only ever logged; clients always see the same 401.
    """


class ConfigError(HTTPChainError, ValueError):
    """Raised by ServerConfig.validate() for invalid settings."""
