"""
=============================================================================
DISPATCHER
=============================================================================

Entry point invoked once per incoming request.

    dispatch(request)
        │
        ├──► router.lookup(request.path)
        │         │
        │         ├── None   → write 404 (ROUTE_NOT_FOUND), no chain runs
        │         │
        │         └── chain  → chain(request, response)
        │
        └──► return response

The "no chain registered" 404 is the dispatcher's own fallback, written
before any middleware runs. NotFoundMiddleware inside a chain is a second,
independent gate over the same route table.

=============================================================================
ERRORS
=============================================================================

Rejections (401, 404) are written by the stage that rejects and never
reach the dispatcher as exceptions. An exception escaping a chain is a
BUG in a handler: the dispatcher logs it with traceback and answers 500
if nothing was committed yet. Nothing propagates out of dispatch(), so a
broken handler can't take the worker thread down with it.

=============================================================================
"""

from typing import Optional
import logging

from .errors import Rejection
from .http.request import Request
from .http.response import Response, internal_error
from .router import Router


logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Per-request entry point over a frozen Router.

    Creating a Dispatcher freezes the router: registration must be
    complete before the first request.

    Usage:
        dispatcher = Dispatcher(router)
        response = dispatcher.dispatch(request)
    """

    def __init__(self, router: Router):
        self._router = router.freeze()

    @property
    def router(self) -> Router:
        return self._router

    def dispatch(self, request: Request, response: Optional[Response] = None) -> Response:
        """
        Route and run one request.

        Args:
            request: The incoming request.
            response: Output sink; a fresh one is created when omitted.

        Returns:
            The populated response.
        """
        if response is None:
            response = Response(version=request.version)

        chain = self._router.lookup(request.path)

        if chain is None:
            response.reject(Rejection.ROUTE_NOT_FOUND)
        else:
            try:
                chain(request, response)
            except Exception as e:
                logger.exception(f"Handler error for {request.method} {request.path}: {e}")
                if not response.written:
                    response.headers.clear()
                    internal_error(response)

        logger.debug(
            f"{request.method} {request.path} -> {int(response.status)}"
            + (f" ({response.rejection.value})" if response.rejection else "")
        )
        return response

    __call__ = dispatch
