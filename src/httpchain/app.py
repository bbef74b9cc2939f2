"""
=============================================================================
DEMO APPLICATION
=============================================================================

The route table served by ``python -m httpchain``:

    PATH      CHAIN (outermost first)              LEAF
    ────────  ───────────────────────────────────  ───────────────────────────
    /         NotFound → Logging                   "Middlewares in Go!"
    /post     NotFound → Logging → Auth            {"message": "Authorized"}
    /health   NotFound                             {"status": "healthy", ...}

Every NotFound stage checks the request path against the router's own
registered set, so the allow-list can never drift from the table.

=============================================================================
"""

from typing import Union

from .auth import JWTVerifier, TokenVerifier
from .config import ServerConfig
from .dispatcher import Dispatcher
from .handlers import TextHandler, JSONHandler, HealthHandler
from .middleware import (
    AuthMiddleware,
    LoggingMiddleware,
    NotFoundMiddleware,
    Handler,
)
from .router import Router


INDEX_BODY = "Middlewares in Go!"
AUTHORIZED_PAYLOAD = {"message": "Authorized"}


def create_router(
    verifier: Union[TokenVerifier, Handler],
    index_body: str = INDEX_BODY,
    log_format: str = "text",
) -> Router:
    """
    Build (but do not freeze) the demo route table.

    Args:
        verifier: Token verification capability for /post.
        index_body: Text served at /.
        log_format: Access log format for the Logging stages.
    """
    router = Router()

    not_found = NotFoundMiddleware.factory(allowed=router.has_route)
    access_log = LoggingMiddleware.factory(log_format=log_format)
    auth = AuthMiddleware.factory(verifier=verifier)

    router.add("/", TextHandler(index_body), not_found, access_log)
    router.add("/post", JSONHandler(AUTHORIZED_PAYLOAD), not_found, access_log, auth)
    router.add("/health", HealthHandler(include_routes=True, router=router), not_found)

    return router


def create_verifier(config: ServerConfig) -> JWTVerifier:
    """JWT verifier from the configured secret, audience and issuer."""
    return JWTVerifier(
        config.require_secret(),
        algorithms=config.jwt_algorithms,
        audience=config.jwt_audience,
        issuer=config.jwt_issuer,
    )


def create_app(config: ServerConfig) -> Dispatcher:
    """
    Build the demo Dispatcher from configuration.

    Raises:
        ConfigError: No JWT secret configured.
    """
    router = create_router(
        create_verifier(config),
        index_body=config.index_body,
        log_format=config.log_format,
    )
    return Dispatcher(router)
