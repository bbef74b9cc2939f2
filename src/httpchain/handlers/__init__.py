"""
Leaf handlers: the terminal, non-forwarding stage of every chain.

Any callable ``handler(request, response) -> None`` that writes a 2xx
response is a valid leaf; these classes cover the common cases.
"""

from .leaf import TextHandler, JSONHandler
from .health import HealthHandler

__all__ = ["TextHandler", "JSONHandler", "HealthHandler"]
