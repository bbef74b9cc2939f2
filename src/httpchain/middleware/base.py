"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Defines the Handler capability and the Middleware base class.
Implements the Chain of Responsibility design pattern.

=============================================================================
HANDLERS AND MIDDLEWARE
=============================================================================

Every stage of a chain is a Handler:

    handler(request, response) -> None

A handler produces its result by WRITING to the response, not by
returning one. There are two kinds:

    LEAF HANDLER   Terminal. Writes the business response (200-class).
    MIDDLEWARE     Owns exactly one "next" handler, fixed at construction.
                   Either forwards to it, or short-circuits by writing
                   its own response (401, 404, ...) and NOT forwarding.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                 CHAIN OF RESPONSIBILITY - REQUEST FLOW               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ┌──────────┐  forward  ┌──────────┐  forward  ┌──────────┐        │
    │   │ NotFound │──────────►│   Auth   │──────────►│   Leaf   │        │
    │   │    MW    │           │    MW    │           │          │        │
    │   └────┬─────┘           └────┬─────┘           └────┬─────┘        │
    │        │                      │                      │              │
    │        ▼                      ▼                      ▼              │
    │   path unknown?          bad token?              write 200          │
    │   write 404, stop        write 401, stop                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FACTORIES
=============================================================================

Chains are built once, at startup, by ChainBuilder. The builder needs to
construct each middleware AROUND the handler that follows it, so it works
with factories rather than instances:

    MiddlewareFactory = Callable[[Handler], Handler]

    AuthMiddleware.factory(verifier=jwt_verifier)   # → factory
    factory(leaf)                                   # → AuthMiddleware(leaf, ...)

A middleware class taking only `next_handler` is itself a valid factory.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
import logging

from ..http.request import Request
from ..http.response import Response


logger = logging.getLogger(__name__)


# =============================================================================
# TYPE ALIASES
# =============================================================================

# A stage of a chain: reads the request, writes the response.
Handler = Callable[[Request, Response], None]

# Builds a middleware around the handler that follows it.
MiddlewareFactory = Callable[[Handler], Handler]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    =========================================================================
    THE MIDDLEWARE CONTRACT
    =========================================================================

        class MyMiddleware(Middleware):
            def __call__(self, request, response):
                if not self.is_valid(request):
                    response.write("Bad Request", 400)   # short-circuit
                    return

                self.forward(request, response)          # continue

    Rules:
    - The next handler is set once, in __init__, and never rewired.
    - Never mutate the request; every stage sees the same object.
    - Either forward OR write a terminal response. Never both.
    - Express rejections as status codes. Don't raise.

    =========================================================================
    """

    def __init__(self, next_handler: Handler):
        """
        Args:
            next_handler: The handler this middleware delegates to.
        """
        self._next = next_handler

    @property
    def next(self) -> Handler:
        """The wrapped handler (another middleware or the leaf)."""
        return self._next

    @abstractmethod
    def __call__(self, request: Request, response: Response) -> None:
        """
        Process the request.

        Either call self.forward(request, response) or write a terminal
        response. Nothing is returned.
        """

    def forward(self, request: Request, response: Response) -> None:
        """Hand the same request and response to the next handler."""
        self._next(request, response)

    @property
    def name(self) -> str:
        """Middleware name for logging."""
        return self.__class__.__name__

    @classmethod
    def factory(cls, **options: Any) -> MiddlewareFactory:
        """
        Bind constructor options now; supply the next handler later.

        Example:
            builder.add(NotFoundMiddleware.factory(allowed=router.has_route))
        """
        def build(next_handler: Handler) -> "Middleware":
            return cls(next_handler, **options)

        build.__name__ = cls.__name__
        return build


# =============================================================================
# FUNCTION MIDDLEWARE
# =============================================================================
#
# Sometimes you want a quick one-off middleware without creating a class.
# FunctionMiddleware wraps a function with the signature
#
#     func(request, response, next_handler) -> None
#
# =============================================================================

class FunctionMiddleware(Middleware):
    """
    Wraps a plain function as middleware.

    Usage:
        @function_middleware
        def require_json(request, response, next_handler):
            if request.content_type != "application/json":
                response.write("Unsupported Media Type", 415)
                return
            next_handler(request, response)

        builder.add(require_json)
    """

    def __init__(
        self,
        next_handler: Handler,
        func: Callable[[Request, Response, Handler], None],
        name: Optional[str] = None,
    ):
        super().__init__(next_handler)
        self._func = func
        self._name = name or func.__name__

    def __call__(self, request: Request, response: Response) -> None:
        self._func(request, response, self._next)

    @property
    def name(self) -> str:
        return self._name


def function_middleware(
    func: Callable[[Request, Response, Handler], None]
) -> MiddlewareFactory:
    """
    Decorator turning a function into a middleware factory.

    The decorated name can be passed straight to ChainBuilder.add().
    """
    return FunctionMiddleware.factory(func=func, name=func.__name__)


def stage_name(handler: Handler) -> str:
    """Readable name of any handler, for logs and chain introspection."""
    name = getattr(handler, "name", None)
    if isinstance(name, str):
        return name
    return getattr(handler, "__name__", None) or handler.__class__.__name__
