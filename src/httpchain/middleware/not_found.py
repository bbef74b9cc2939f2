"""
=============================================================================
NOT-FOUND MIDDLEWARE
=============================================================================

Gates the rest of a chain by path membership in an allow-list.

    request.path in allow-list?  ──yes──►  forward unchanged
               │
               no
               ▼
         write 404, stop

The allow-list is NOT a literal list baked into the middleware. It is an
injected membership check, normally the router's own `has_route`, so the
set of allowed paths and the set of routed paths can never drift apart:

    NotFoundMiddleware.factory(allowed=router.has_route)

Matching is exact string comparison: no wildcards, no prefix matching,
no trailing-slash normalisation. "/post" and "/post/" are different paths.

=============================================================================
"""

from typing import Callable, Collection, Union
import logging

from .base import Handler, Middleware
from ..errors import Rejection
from ..http.request import Request
from ..http.response import Response


logger = logging.getLogger(__name__)


PathPredicate = Callable[[str], bool]


def _as_predicate(allowed: Union[PathPredicate, Collection[str]]) -> PathPredicate:
    if callable(allowed):
        return allowed
    paths = frozenset(allowed)
    return paths.__contains__


class NotFoundMiddleware(Middleware):
    """
    Forward only requests whose path is allowed; 404 everything else.

    Args:
        next_handler: Handler to forward allowed requests to.
        allowed: Membership capability. Either a callable
                 ``path -> bool`` or a collection of exact paths
                 (frozen at construction).
    """

    def __init__(
        self,
        next_handler: Handler,
        allowed: Union[PathPredicate, Collection[str]],
    ):
        super().__init__(next_handler)
        self._is_allowed = _as_predicate(allowed)

    def __call__(self, request: Request, response: Response) -> None:
        if self._is_allowed(request.path):
            self.forward(request, response)
            return

        logger.debug(f"Path not allowed: {request.method} {request.path}")
        response.reject(Rejection.PATH_NOT_ALLOWED)
