"""
=============================================================================
ROUTER
=============================================================================

Maps an exact request path to the pre-built Chain responsible for it.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ROUTE TABLE                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │   "/"        → NotFound → Logging → TextHandler                     │
    │   "/post"    → NotFound → Logging → Auth → JSONHandler              │
    │   "/health"  → NotFound → HealthHandler                             │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    startup:   register / add / @route  ...  (mutable)
                              │
                          freeze()          (Dispatcher does this)
                              │
    serving:   lookup / has_route           (read-only, lock-free)

Registration is the ONLY mutation point and must finish before the first
request is dispatched. After freeze() the table is read concurrently by
every worker thread without locking, so any late registration raises
RouterFrozenError instead of racing with readers.

=============================================================================
MATCHING
=============================================================================

Exact string comparison, one dict lookup. No ":param" segments, no
wildcards, no method routing, no trailing-slash normalisation:

    "/post"   matches  "/post"
    "/post/"  does NOT match "/post"
    "/POST"   does NOT match "/post"

=============================================================================
"""

from types import MappingProxyType
from typing import Callable, Dict, FrozenSet, Iterator, Optional
import logging

from .errors import RouterFrozenError
from .middleware.base import Handler, MiddlewareFactory
from .middleware.chain import Chain, build_chain


logger = logging.getLogger(__name__)


class Router:
    """
    Exact-path route table.

    Usage:
        router = Router()

        # Register a pre-built chain
        router.register("/", build_chain(index_leaf, not_found))

        # Or build and register in one call
        router.add("/post", post_leaf, not_found, auth)

        # Or decorate a leaf function
        @router.route("/about", not_found)
        def about(request, response):
            response.write("about")
    """

    def __init__(self):
        self._routes: Dict[str, Chain] = {}
        self._frozen = False

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, path: str, chain: Chain) -> Chain:
        """
        Register a pre-built chain for an exact path.

        Raises:
            RouterFrozenError: If the router was already frozen.
            ValueError: If the path is malformed or already registered.
            TypeError: If chain is not a Chain.
        """
        if self._frozen:
            raise RouterFrozenError(f"Cannot register {path!r}: router is frozen")
        if not isinstance(path, str) or not path.startswith("/"):
            raise ValueError(f"Route path must start with '/': {path!r}")
        if path in self._routes:
            raise ValueError(f"Route already registered: {path!r}")
        if not isinstance(chain, Chain):
            raise TypeError(f"Expected a Chain for {path!r}, got {type(chain).__name__}")

        self._routes[path] = chain
        logger.debug(f"Registered route {path} -> {chain!r}")
        return chain

    def add(self, path: str, leaf: Handler, *factories: MiddlewareFactory) -> Chain:
        """
        Build a chain (factories outermost first, then leaf) and register it.
        """
        return self.register(path, build_chain(leaf, *factories))

    def route(self, path: str, *factories: MiddlewareFactory) -> Callable[[Handler], Handler]:
        """
        Decorator registering a leaf function behind the given middlewares.

        Returns the function unchanged so it can still be called directly.
        """
        def decorator(leaf: Handler) -> Handler:
            self.add(path, leaf, *factories)
            return leaf
        return decorator

    def freeze(self) -> "Router":
        """Make the table read-only. Idempotent."""
        if not self._frozen:
            self._frozen = True
            self._routes = MappingProxyType(dict(self._routes))
            logger.debug(f"Router frozen with {len(self._routes)} routes")
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def lookup(self, path: str) -> Optional[Chain]:
        """The chain registered for exactly this path, or None."""
        return self._routes.get(path)

    def has_route(self, path: str) -> bool:
        """
        Membership check for exact paths.

        This bound method is the allow-list capability handed to
        NotFoundMiddleware. It reads the live table, so paths registered
        after a chain was built are still recognised.
        """
        return path in self._routes

    def paths(self) -> FrozenSet[str]:
        return frozenset(self._routes)

    def __contains__(self, path: object) -> bool:
        return path in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def print_routes(self) -> None:
        """
        Print the route table (startup banner / debugging).

            Registered Routes:
            ------------------------------------------------------------
              /          NotFoundMiddleware -> LoggingMiddleware -> TextHandler
              /post      NotFoundMiddleware -> ... -> JSONHandler
            ------------------------------------------------------------
        """
        print("\nRegistered Routes:")
        print("-" * 60)
        for path in sorted(self._routes):
            print(f"  {path:10} {' -> '.join(self._routes[path].stages)}")
        print("-" * 60)
