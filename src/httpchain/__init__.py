"""
=============================================================================
httpchain: middleware-chain request dispatch for HTTP
=============================================================================

Each route owns a chain of handlers. A middleware stage inspects the
request and either writes a rejection (404, 401) or forwards to the next
stage; the chain ends at a leaf handler that writes the body.

    router = Router()
    not_found = NotFoundMiddleware.factory(allowed=router.has_route)
    auth = AuthMiddleware.factory(verifier=JWTVerifier(secret))

    router.add("/", TextHandler("hello"), not_found)
    router.add("/post", JSONHandler({"message": "Authorized"}), not_found, auth)

    dispatcher = Dispatcher(router)          # freezes the table
    HTTPServer(dispatcher, config).run()

=============================================================================
"""

__version__ = "1.0.0"

from .errors import (
    Rejection,
    HTTPChainError,
    ResponseAlreadyWrittenError,
    RouterFrozenError,
    TokenVerificationError,
    ConfigError,
)
from .http import Request, Response, HTTPStatus
from .middleware import (
    Handler,
    Middleware,
    MiddlewareFactory,
    function_middleware,
    Chain,
    ChainBuilder,
    build_chain,
    NotFoundMiddleware,
    AuthMiddleware,
    LoggingMiddleware,
)
from .auth import TokenVerifier, JWTVerifier, StaticTokenVerifier
from .handlers import TextHandler, JSONHandler, HealthHandler
from .router import Router
from .dispatcher import Dispatcher
from .config import ServerConfig
from .server import HTTPServer
from .app import create_app, create_router

__all__ = [
    "__version__",
    "Rejection",
    "HTTPChainError",
    "ResponseAlreadyWrittenError",
    "RouterFrozenError",
    "TokenVerificationError",
    "ConfigError",
    "Request",
    "Response",
    "HTTPStatus",
    "Handler",
    "Middleware",
    "MiddlewareFactory",
    "function_middleware",
    "Chain",
    "ChainBuilder",
    "build_chain",
    "NotFoundMiddleware",
    "AuthMiddleware",
    "LoggingMiddleware",
    "TokenVerifier",
    "JWTVerifier",
    "StaticTokenVerifier",
    "TextHandler",
    "JSONHandler",
    "HealthHandler",
    "Router",
    "Dispatcher",
    "ServerConfig",
    "HTTPServer",
    "create_app",
    "create_router",
]
