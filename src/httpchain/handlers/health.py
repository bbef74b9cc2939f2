"""
=============================================================================
HEALTH CHECK HANDLER
=============================================================================

Liveness leaf for load balancers and orchestrators:

    GET /health  →  200  {"status": "healthy", "uptime_seconds": 42.0}

It reports only that the process is up and dispatching. It has no
dependency checks to fail, so like every leaf it always answers 2xx.

=============================================================================
"""

import time

from ..http.request import Request
from ..http.response import Response


class HealthHandler:
    """
    Health check leaf.

    Usage:
        router.add("/health", HealthHandler(), not_found)
    """

    def __init__(self, include_routes: bool = False, router=None):
        """
        Args:
            include_routes: Add the number of registered routes.
            router: Router to count routes from (needed for include_routes).
        """
        self.include_routes = include_routes
        self._router = router
        self._start_time = time.time()

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def uptime(self) -> float:
        return time.time() - self._start_time

    def __call__(self, request: Request, response: Response) -> None:
        body = {
            "status": "healthy",
            "uptime_seconds": round(self.uptime, 2),
        }
        if self.include_routes and self._router is not None:
            body["routes"] = len(self._router)

        response.set_header("Cache-Control", "no-store")
        response.write_json(body)
