"""
=============================================================================
CHAIN BUILDER
=============================================================================

Composes an ordered list of middleware factories around one leaf handler.

Instead of nesting constructors by hand:

    NotFoundMiddleware(AuthMiddleware(LeafHandler(), verifier), allowed)

you declare the order as a flat list and let the builder fold it:

    chain = (ChainBuilder()
        .add(NotFoundMiddleware.factory(allowed=router.has_route))
        .add(AuthMiddleware.factory(verifier=verifier))
        .build(leaf))

=============================================================================
HOW THE FOLD WORKS
=============================================================================

    Given: [F1, F2, F3] and leaf

    Step 1: current = leaf
    Step 2: current = F3(current)      # MW3 → leaf
    Step 3: current = F2(current)      # MW2 → MW3
    Step 4: current = F1(current)      # MW1 → MW2

    Final:  MW1 → MW2 → MW3 → leaf

We fold RIGHT-TO-LEFT so the first-added factory ends up outermost and
runs first. Every middleware receives its "next" exactly once, at
construction, and the wiring never changes afterwards. Because each
step only wraps an already-built handler, a chain can't contain a cycle.

=============================================================================
"""

from typing import List, Tuple
import logging

from .base import Handler, MiddlewareFactory, stage_name
from ..http.request import Request
from ..http.response import Response


logger = logging.getLogger(__name__)


class Chain:
    """
    A fully composed chain: middlewares plus exactly one leaf.

    A Chain is itself a Handler; calling it runs the outermost stage.

    Attributes:
        handler: The outermost handler (entry point).
        leaf:    The terminal handler at the innermost position.
        stages:  Stage names, outermost first, leaf last.
    """

    def __init__(self, handler: Handler, leaf: Handler, stages: Tuple[str, ...]):
        self._handler = handler
        self._leaf = leaf
        self._stages = stages

    @property
    def handler(self) -> Handler:
        return self._handler

    @property
    def leaf(self) -> Handler:
        return self._leaf

    @property
    def stages(self) -> Tuple[str, ...]:
        return self._stages

    def __call__(self, request: Request, response: Response) -> None:
        self._handler(request, response)

    def __len__(self) -> int:
        """Number of middlewares (the leaf is not counted)."""
        return len(self._stages) - 1

    def __repr__(self) -> str:
        return f"<Chain {' -> '.join(self._stages)}>"


class ChainBuilder:
    """
    Ordered-list builder for chains.

    Factories are applied in the order added: first added = outermost.
    A builder can be reused to build several chains with the same
    middleware stack around different leaves; each build() creates fresh
    middleware instances, so chains never share mutable state.
    """

    def __init__(self):
        self._factories: List[MiddlewareFactory] = []

    def add(self, factory: MiddlewareFactory) -> "ChainBuilder":
        """
        Append a middleware factory.

        Returns:
            Self for method chaining.
        """
        self._factories.append(factory)
        logger.debug(f"Added middleware factory: {stage_name(factory)}")
        return self

    def use(self, *factories: MiddlewareFactory) -> "ChainBuilder":
        """Append several factories at once."""
        for factory in factories:
            self.add(factory)
        return self

    def build(self, leaf: Handler) -> Chain:
        """
        Wrap the leaf with every middleware, outermost = first added.

        Args:
            leaf: The terminal handler.

        Returns:
            The composed Chain.
        """
        if not callable(leaf):
            raise TypeError(f"Leaf handler must be callable, got {leaf!r}")

        current = leaf
        names = [stage_name(leaf)]

        for factory in reversed(self._factories):
            current = factory(current)
            names.append(stage_name(current))

        names.reverse()
        chain = Chain(current, leaf, tuple(names))
        logger.debug(f"Built chain: {chain!r}")
        return chain

    def __len__(self) -> int:
        return len(self._factories)

    def __iter__(self):
        return iter(self._factories)


def build_chain(leaf: Handler, *factories: MiddlewareFactory) -> Chain:
    """
    One-shot helper: build_chain(leaf, F1, F2) runs F1, then F2, then leaf.
    """
    return ChainBuilder().use(*factories).build(leaf)
