"""
=============================================================================
MIDDLEWARE FRAMEWORK
=============================================================================

Composable request gates. Each middleware wraps exactly one next handler
and either forwards the request to it or short-circuits with its own
response:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Incoming Request                                                  │
    │        │                                                            │
    │        ▼                                                            │
    │   NotFoundMiddleware ──► 404 if path not registered                 │
    │        │                                                            │
    │        ▼                                                            │
    │   LoggingMiddleware  ──► access log line                            │
    │        │                                                            │
    │        ▼                                                            │
    │   AuthMiddleware     ──► 401 if bearer token invalid                │
    │        │                                                            │
    │        ▼                                                            │
    │   Leaf handler       ──► 200 + body                                 │
    └─────────────────────────────────────────────────────────────────────┘

Chains are assembled with ChainBuilder from middleware FACTORIES, first
added = outermost.

=============================================================================
"""

from .base import (
    Handler,
    Middleware,
    MiddlewareFactory,
    FunctionMiddleware,
    function_middleware,
)
from .chain import Chain, ChainBuilder, build_chain
from .not_found import NotFoundMiddleware
from .auth import AuthMiddleware, extract_bearer_token
from .logging import LoggingMiddleware

__all__ = [
    # Base classes
    "Handler",
    "Middleware",
    "MiddlewareFactory",
    "FunctionMiddleware",
    "function_middleware",

    # Composition
    "Chain",
    "ChainBuilder",
    "build_chain",

    # Built-in middleware
    "NotFoundMiddleware",
    "AuthMiddleware",
    "extract_bearer_token",
    "LoggingMiddleware",
]
